"""输出配置异常定义模块."""

from ..exceptions import ElasticsinkError


class ConfigError(ElasticsinkError):
    """输出配置校验异常.

    当配置参数不合法时抛出，例如未知的写操作类型、非法的时间精度等。
    """

    pass
