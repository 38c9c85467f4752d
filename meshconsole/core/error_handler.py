# -*- coding: utf-8 -*-
"""
统一错误处理模块
为Istio配置与控制台导航API提供一致的错误响应格式
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException
from kubernetes.client.exceptions import ApiException
from pydantic import BaseModel


class ErrorType(str, Enum):
    """错误类型枚举"""

    CONNECTION_ERROR = "connection_error"
    AUTH_ERROR = "auth_error"
    NOT_FOUND = "not_found"
    PROCESSING_ERROR = "processing_error"
    TIMEOUT_ERROR = "timeout_error"
    VALIDATION_ERROR = "validation_error"


class ErrorDetails(BaseModel):
    """错误详情模型"""

    namespace: Optional[str] = None
    object_type: Optional[str] = None
    object_name: Optional[str] = None
    operation: Optional[str] = None


class ErrorResponse(BaseModel):
    """统一错误响应模型"""

    code: int
    message: str
    error_type: ErrorType
    details: ErrorDetails


class ResourceErrorHandler:
    """Istio配置API错误处理器"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    @staticmethod
    def _log_prefix(object_type: Optional[str], namespace: Optional[str]) -> str:
        prefix = f"[{object_type or 'Istio配置'}]"
        if namespace:
            prefix += f"[{namespace}]"
        return prefix

    def handle_k8s_exception(
        self,
        e: Exception,
        namespace: Optional[str] = None,
        object_type: Optional[str] = None,
        object_name: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> HTTPException:
        """将Kubernetes API及运行时异常转换为HTTP异常"""

        details = ErrorDetails(
            namespace=namespace,
            object_type=object_type,
            object_name=object_name,
            operation=operation,
        )
        log_prefix = self._log_prefix(object_type, namespace)

        if isinstance(e, ApiException):
            if e.status == 401:
                error_type = ErrorType.AUTH_ERROR
                message = f"集群认证失败: {e.reason}"
                status_code = 401
            elif e.status == 403:
                error_type = ErrorType.AUTH_ERROR
                message = f"权限不足: {e.reason}"
                status_code = 403
            elif e.status == 404:
                error_type = ErrorType.NOT_FOUND
                message = f"资源不存在: {e.reason}"
                status_code = 404
            elif e.status is not None and e.status >= 500:
                error_type = ErrorType.CONNECTION_ERROR
                message = f"集群连接错误: {e.reason}"
                status_code = 502
            else:
                error_type = ErrorType.PROCESSING_ERROR
                message = f"API调用失败: {e.reason}"
                status_code = 400

            self.logger.error(
                "%sKubernetes API错误 - 状态码=%s, 原因=%s",
                log_prefix,
                e.status,
                e.reason,
            )

        elif isinstance(e, asyncio.TimeoutError):
            error_type = ErrorType.TIMEOUT_ERROR
            message = "操作超时"
            status_code = 408
            self.logger.error("%s操作超时", log_prefix)

        elif isinstance(e, ConnectionError):
            error_type = ErrorType.CONNECTION_ERROR
            message = f"连接失败: {str(e)}"
            status_code = 502
            self.logger.error("%s连接错误: %s", log_prefix, str(e))

        else:
            error_type = ErrorType.PROCESSING_ERROR
            message = f"处理失败: {str(e)}"
            status_code = 500
            self.logger.error(
                "%s处理错误 - 错误类型=%s, 错误信息=%s",
                log_prefix,
                type(e).__name__,
                str(e),
            )

        error_response = ErrorResponse(
            code=status_code, message=message, error_type=error_type, details=details
        )

        return HTTPException(status_code=status_code, detail=error_response.model_dump())

    def handle_not_found(
        self,
        message: str,
        namespace: Optional[str] = None,
        object_type: Optional[str] = None,
        object_name: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> HTTPException:
        """处理非Kubernetes来源的资源不存在错误（如控制台路径未匹配）"""

        details = ErrorDetails(
            namespace=namespace,
            object_type=object_type,
            object_name=object_name,
            operation=operation,
        )
        self.logger.warning(
            "%s资源不存在: %s", self._log_prefix(object_type, namespace), message
        )

        error_response = ErrorResponse(
            code=404,
            message=message,
            error_type=ErrorType.NOT_FOUND,
            details=details,
        )
        return HTTPException(status_code=404, detail=error_response.model_dump())

    def handle_validation_error(
        self,
        message: str,
        namespace: Optional[str] = None,
        object_type: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> HTTPException:
        """处理请求参数验证错误"""

        details = ErrorDetails(
            namespace=namespace, object_type=object_type, operation=operation
        )
        self.logger.warning(
            "%s验证错误: %s", self._log_prefix(object_type, namespace), message
        )

        error_response = ErrorResponse(
            code=400,
            message=message,
            error_type=ErrorType.VALIDATION_ERROR,
            details=details,
        )

        return HTTPException(status_code=400, detail=error_response.model_dump())


def with_timeout(timeout_seconds: int = 30):
    """超时装饰器"""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await asyncio.wait_for(
                    func(*args, **kwargs), timeout=timeout_seconds
                )
            except asyncio.TimeoutError:
                raise asyncio.TimeoutError(f"操作超时 ({timeout_seconds}秒)")

        return wrapper

    return decorator


def create_error_handler(logger: logging.Logger) -> ResourceErrorHandler:
    """创建错误处理器实例"""
    return ResourceErrorHandler(logger)
