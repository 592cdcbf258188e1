from .client import build_http_client, iter_lines, open_stream, probe

__all__ = ["build_http_client", "open_stream", "iter_lines", "probe"]
