from .errors import ConfigFormatError, RemapError, StatementError, StoreConnectionError
from .db_connector import (
    CONNECTORS,
    DatabaseConnector,
    MssqlConnector,
    MySqlConnector,
    ScriptRecorder,
    create_connector,
)
from .transfer_executor import TransferExecutor
