"""
Invoice Detail Client - Source Package.

Batch client for a remote invoice detail detection service. Each stage
lives in its own sub-package.

Modules:
    - catalog: Field names, filter bits and group definitions
    - detection_client: HTTP transport and typed prediction results
    - flattener: Nested predictions to flat per-document rows
    - input_handler: Input document discovery
    - output_handler: Per-document files and the merged table
    - pipeline: Batch orchestration

Architecture:
    Input → Detection → Flattening → Per-document output
                                            ↓
                                      Merged table
"""

__version__ = "1.0.0"

__all__ = [
    'catalog',
    'detection_client',
    'flattener',
    'input_handler',
    'output_handler',
    'pipeline',
    'utils'
]
