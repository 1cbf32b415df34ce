from .models import (
    ColumnMapping,
    ConnectionDescriptor,
    ConnectionPair,
    CopyDirective,
    Directive,
    NO_OVERRIDE,
    NoOverride,
    OverrideDirective,
    OverridePending,
    OverrideState,
    PlannedTransfer,
    RemapResult,
    RemapSettings,
    TransferSummary,
)
from .loader import load_config_file, load_raw_directives
