"""elasticsink 异常定义模块."""


class ElasticsinkError(Exception):
    """elasticsink 基础异常类."""

    pass
