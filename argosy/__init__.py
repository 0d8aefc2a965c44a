__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'argosy'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .faults import *
from .handlers import *
from .context import *
from .metadata import *
from .parsing import *
from .binding import *
from .pipeline import *
from .registry import *
from .services import *
from .config import *
from .logs import *
from .filters import *
from .hosting import *

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
    "version_info"
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command and filter capabilities
__all__ += handlers.__all__  # type: ignore[attr-defined]
# Load the exposed API of the invocation context
__all__ += context.__all__  # type: ignore[attr-defined]
# Load the exposed API of the metadata model
__all__ += metadata.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser collaborator
__all__ += parsing.__all__  # type: ignore[attr-defined]
# Load the exposed API of the binders
__all__ += binding.__all__  # type: ignore[attr-defined]
# Load the exposed API of the filter pipeline
__all__ += pipeline.__all__  # type: ignore[attr-defined]
# Load the exposed API of the command registry
__all__ += registry.__all__  # type: ignore[attr-defined]
# Load the exposed API of the services
__all__ += services.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the logging setup
__all__ += logs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the stock filters
__all__ += filters.__all__  # type: ignore[attr-defined]
# Load the exposed API of the hosting layer
__all__ += hosting.__all__  # type: ignore[attr-defined]
