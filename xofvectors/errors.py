from __future__ import annotations

from typing import Optional


class VectorError(Exception):
    reason_code = "vector_error"


class MalformedEncoding(VectorError):
    reason_code = "malformed_encoding"


class MalformedInput(VectorError):
    reason_code = "malformed_input"


class InvalidTestVector(VectorError):
    reason_code = "invalid_test_vector"

    def __init__(self, msg: str, tg_id: Optional[int] = None, tc_id: Optional[int] = None):
        super().__init__(msg)
        self.tg_id = tg_id
        self.tc_id = tc_id


class SubjectFailure(VectorError):
    reason_code = "subject_failure"


class ConfigError(VectorError):
    reason_code = "config_error"
