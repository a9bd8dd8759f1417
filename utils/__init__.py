# LMS utilities
from .file_storage import (
    GenerationLogger,
    generate_uuid,
    build_material_path,
    read_json_file,
    write_json_file
)

from .model_config import (
    ModelConfig,
    ModelProvider,
    MODEL_CONFIGS,
    DEFAULT_MODEL
)

__all__ = [
    'GenerationLogger',
    'generate_uuid',
    'build_material_path',
    'read_json_file',
    'write_json_file',
    'ModelConfig',
    'ModelProvider',
    'MODEL_CONFIGS',
    'DEFAULT_MODEL'
]
