"""记录转换异常定义模块."""

from elasticsink.exceptions import ElasticsinkError


class TransformError(ElasticsinkError):
    """记录转换基础异常."""

    pass


class MissingIdFieldError(TransformError):
    """写操作需要 _id 但记录中缺少对应字段."""

    pass


class InvalidRecordError(TransformError):
    """记录不是字典，无法转换."""

    pass


class TimeParseError(TransformError):
    """时间字段解析异常."""

    pass
