"""
Manufacturing Order Kernel

The pure core of the order lifecycle:
- Order and external job status values
- Append-only status history
- Typed rejections and exceptions
- Injectable clock and identifier generation
- Structured JSON logging
"""

__version__ = "0.1.0"
