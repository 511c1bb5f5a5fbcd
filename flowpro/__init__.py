"""
FlowPro: Job Document Pipeline

Packages:
    api/        HTTP download endpoints
    forms/      PDF drawing, DOCX template filling, file delivery
    core/       Domain records, configuration, paths, errors
"""

__version__ = "1.4.0"
