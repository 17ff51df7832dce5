"""
自定义异常类
"""


class GatewayError(Exception):
    """基础异常类"""

    code: int = 500

    def __init__(self, message: str, recoverable: bool = False):
        self.message = message
        self.recoverable = recoverable
        super().__init__(self.message)


class InvalidInputError(GatewayError):
    """链接或请求体不合法"""

    code = 400

    def __init__(self, message: str):
        super().__init__(message, recoverable=True)


class RateLimitedError(GatewayError):
    """请求过于频繁"""

    code = 429

    def __init__(self, message: str, retry_after: float = 0.0):
        super().__init__(message, recoverable=True)
        self.retry_after = retry_after


class UpstreamError(GatewayError):
    """上游解析 API 重试耗尽或返回无法解析的内容"""

    code = 500
