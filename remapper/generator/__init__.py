from .escaping import BackslashEscape, DoubleEscape, EscapingPolicy, stringify
from .sql_generator import DIALECTS, MssqlDialect, MySqlDialect, SqlDialect, get_dialect
from .column_mapper import ColumnPlan, build_column_plan
