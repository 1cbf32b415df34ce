from .file_exporter import FileExporter
from .logger import setup_logging
