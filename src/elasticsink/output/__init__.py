"""Elasticsearch 输出模块.

示例用法:
    >>> from elasticsink.output import ElasticsearchOutput
    >>> output = ElasticsearchOutput(config, transport, router)
    >>> result = output.write(events)
    >>> print(f"成功: {result.accepted}, 重试: {result.retried}")
"""

from .tool import ElasticsearchOutput

__all__ = ["ElasticsearchOutput"]
