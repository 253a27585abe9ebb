__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'cap'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .arguments import *
from .cache import *
from .commands import *
from .faults import *
from .managers import *
from .renderers import *
from .senders import *
from .settings import *
from .tokens import *
from . import parsers, validators

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "parsers",
    "validators",
)

# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the caches
__all__ += cache.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the managers
__all__ += managers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the renderers
__all__ += renderers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the senders
__all__ += senders.__all__  # type: ignore[attr-defined]
# Load the exposed API of the settings
__all__ += settings.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokens
__all__ += tokens.__all__  # type: ignore[attr-defined]
