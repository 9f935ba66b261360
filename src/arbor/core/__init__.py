from .context import ProviderContext
from .host import HostSink, LoguruHost, ProgressRecord

__all__ = ["ProviderContext", "HostSink", "LoguruHost", "ProgressRecord"]
