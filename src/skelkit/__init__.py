"""skelkit – answer-driven installer for a Mezzio-style web application skeleton"""

__version__ = "0.1.0"

from .catalog import (
    DECLINE_ANSWER,
    Constraint,
    ConstraintStage,
    InstallLayout,
    LayoutSpec,
    Option,
    OptionCatalog,
    Question,
    QuestionId,
    default_catalog,
)
from .config import InstallerConfig, load_config
from .errors import (
    DuplicateInsertion,
    IncompatibleSelection,
    InstallerError,
    InvalidOption,
    IOFailure,
    MarkerNotFound,
    MissingAnswer,
    OrderViolation,
    SessionBroken,
    UnknownQuestion,
)
from .aggregator import ConfigAggregatorFile, provider_line, provider_references
from .manifest import ComposerManifest
from .mutator import ConfigMutator
from .session import InstallSession
from .skeleton import create_project
from .state import AnswerRecord, SessionPhase, SessionState
from .validator import AnswerValidator

__all__ = [
    "__version__",
    # Catalog
    "DECLINE_ANSWER",
    "Constraint",
    "ConstraintStage",
    "InstallLayout",
    "LayoutSpec",
    "Option",
    "OptionCatalog",
    "Question",
    "QuestionId",
    "default_catalog",
    # Config
    "InstallerConfig",
    "load_config",
    # Errors
    "DuplicateInsertion",
    "IncompatibleSelection",
    "InstallerError",
    "InvalidOption",
    "IOFailure",
    "MarkerNotFound",
    "MissingAnswer",
    "OrderViolation",
    "SessionBroken",
    "UnknownQuestion",
    # Engine
    "AnswerValidator",
    "ComposerManifest",
    "ConfigAggregatorFile",
    "ConfigMutator",
    "provider_line",
    "provider_references",
    # Session
    "AnswerRecord",
    "InstallSession",
    "SessionPhase",
    "SessionState",
    "create_project",
]
