"""mu-loader: load regular extensions as must-use extensions.

Promoted extensions stay installed in the ordinary extensions directory and
keep their normal update flow, but are forced active and hidden from the
host's per-extension toggles.
"""

from muloader.loader import MuLoader, bootstrap

__version__ = "1.2.1"

__all__ = ["MuLoader", "__version__", "bootstrap"]
