"""版本信息"""

__version__ = "0.1.0"
__author__ = "yafo-ai"
__description__ = "基于 SQL 写语句分析的响应缓存与精准失效组件"
