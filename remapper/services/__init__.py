from .directive_parser import DirectiveParser, parse_directives
from .interpreter import DirectiveInterpreter, plan_transfers, resolve
from .remap_service import RemapService
