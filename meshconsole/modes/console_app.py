# -*- coding: utf-8 -*-
"""
控制台App模式
使用集群内权限（或本地kubeconfig）访问Kubernetes API，对外提供控制台后端接口
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.openapi.docs import get_swagger_ui_html
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from meshconsole.core.config import Settings
from meshconsole.console.console_api import create_console_router
from .base_mode import BaseMode
from .istio.fetcher import IstioConfigFetcher
from .istio.router import create_istio_router


class ConsoleAppMode(BaseMode):
    """控制台App模式实现"""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.app: Optional[FastAPI] = None
        self.api_client: Optional[client.ApiClient] = None
        self.istio_fetcher: Optional[IstioConfigFetcher] = None

    def init_k8s_client(self):
        """初始化Kubernetes客户端与Istio配置获取器"""
        if self.settings.k8s.in_cluster:
            try:
                config.load_incluster_config()
                self.logger.info("成功加载集群内Kubernetes配置")
            except ConfigException as e:
                # 开发环境回退到本地kubeconfig
                self.logger.warning("加载集群内配置失败，尝试本地kubeconfig: %s", e)
                config.load_kube_config(config_file=self.settings.k8s.kubeconfig_path)
                self.logger.info("使用本地kubeconfig初始化成功")
        else:
            config.load_kube_config(config_file=self.settings.k8s.kubeconfig_path)
            self.logger.info("使用本地kubeconfig初始化成功")

        self.api_client = client.ApiClient()
        self.istio_fetcher = IstioConfigFetcher(self.api_client, self.settings.istio)

    def create_app(self) -> FastAPI:
        """创建FastAPI应用"""
        app = FastAPI(
            title=self.settings.app_name,
            version=self.settings.version,
            description="MeshConsole - 服务网格可观测性控制台后端",
            docs_url=None,
        )

        @app.get("/")
        async def root():
            return {
                "code": 200,
                "data": {
                    "message": "MeshConsole",
                    "version": self.settings.version,
                },
            }

        @app.get("/docs", include_in_schema=False)
        async def custom_swagger_ui_html():
            return get_swagger_ui_html(
                openapi_url=app.openapi_url, title="MeshConsole APIs"
            )

        @app.get("/health")
        async def health():
            """健康检查"""
            return {
                "code": 200,
                "data": {
                    "status": "healthy",
                    "k8s_connected": self.istio_fetcher is not None,
                },
            }

        # 注册控制台导航路由
        app.include_router(create_console_router())

        # 注册Istio相关路由
        app.include_router(create_istio_router(self))

        return app

    async def start(self, host: str = "0.0.0.0", port: int = 8000):
        """启动控制台App模式"""
        self.logger.info("正在启动控制台App模式...")

        self.init_k8s_client()
        self.app = self.create_app()

        server_config = uvicorn.Config(
            self.app, host=host, port=port, log_level=self.settings.log_level.lower()
        )
        server = uvicorn.Server(server_config)

        self.logger.info("控制台App模式启动成功，监听 %s:%d", host, port)
        await server.serve()

    async def stop(self):
        """停止服务"""
        self.logger.info("正在停止控制台App模式...")
        if self.api_client:
            self.api_client.close()
            self.api_client = None
        if self.istio_fetcher:
            self.istio_fetcher.close()
