"""scaffolder - 按分支隔离的开发环境编排引擎"""

__version__ = "0.1.0"
