from .loader import APISettings, HTTPSettings, LLMSettings, Settings, load_settings

__all__ = ["Settings", "LLMSettings", "HTTPSettings", "APISettings", "load_settings"]
