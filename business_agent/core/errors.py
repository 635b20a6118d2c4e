# business_agent/core/errors.py


class BusinessAgentError(Exception):
    """
    파이프라인 단계에서 발생하는 모든 에러의 베이스.
    status_code 는 API 레이어에서 그대로 HTTP 상태코드로 사용한다.
    """
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(BusinessAgentError):
    status_code = 400


class SchemaIntrospectionError(BusinessAgentError):
    pass


class GenerationError(BusinessAgentError):
    pass


class QueryExecutionError(BusinessAgentError):
    pass
