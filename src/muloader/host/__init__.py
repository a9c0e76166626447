"""Host boundary: the narrow interfaces mu-loader consumes.

``contracts`` declares what a host must provide; ``hooks`` is a small
priority-ordered filter/action registry a host can embed directly.
"""

from muloader.host.contracts import ExtensionLoader, Host, OptionStore, RequestContext
from muloader.host.hooks import HookRegistry

__all__ = ["ExtensionLoader", "Host", "HookRegistry", "OptionStore", "RequestContext"]
