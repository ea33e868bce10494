"""Module resolution, fetch caching and cancellation for a Svelte playground bundler."""

from .errors import Aborted
from .errors import BundlerError
from .errors import CompileError
from .errors import NetworkError
from .errors import ResolutionError
from .errors import UnknownImportError
from .fetch_cache import FetchCache
from .generation import GenerationGuard
from .models import BundleRequest
from .models import BundleResult
from .models import SourceDocument
from .models import SourceKind
from .orchestrator import Bundler
from .settings import BundlerSettings
from .settings import load_settings
from .worker import BundleWorker
from .worker import create_worker

__all__ = [
    "Aborted",
    "BundleRequest",
    "BundleResult",
    "BundleWorker",
    "Bundler",
    "BundlerError",
    "BundlerSettings",
    "CompileError",
    "FetchCache",
    "GenerationGuard",
    "NetworkError",
    "ResolutionError",
    "SourceDocument",
    "SourceKind",
    "UnknownImportError",
    "create_worker",
    "load_settings",
]
