# -*- coding: utf-8 -*-
"""
配置管理模块
支持从环境变量、配置文件等多种方式加载配置
"""

import logging
import os
import yaml
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


# Mixer适配器资源复数名称
DEFAULT_ADAPTER_PLURALS = [
    "bypasses",
    "circonuses",
    "deniers",
    "fluentds",
    "kubernetesenvs",
    "listcheckers",
    "memquotas",
    "noops",
    "opas",
    "prometheuses",
    "rbacs",
    "redisquotas",
    "servicecontrols",
    "signalfxs",
    "solarwindses",
    "stackdrivers",
    "statsds",
    "stdios",
]

# Mixer模板资源复数名称
DEFAULT_TEMPLATE_PLURALS = [
    "apikeys",
    "authorizations",
    "checknothings",
    "edges",
    "kuberneteses",
    "listentries",
    "logentries",
    "metrics",
    "quotas",
    "reportnothings",
    "servicecontrolreports",
    "tracespans",
]


@dataclass
class K8sConfig:
    """Kubernetes配置"""

    in_cluster: bool = True  # 是否在集群内运行
    kubeconfig_path: Optional[str] = None


@dataclass
class IstioConfig:
    """Istio API配置"""

    networking_group: str = "networking.istio.io"
    networking_version: str = "v1alpha3"
    config_group: str = "config.istio.io"
    config_version: str = "v1alpha2"
    request_timeout: int = 30  # 秒
    max_concurrent_requests: int = 8  # 并发的Kubernetes API调用数
    adapter_plurals: List[str] = field(
        default_factory=lambda: list(DEFAULT_ADAPTER_PLURALS)
    )
    template_plurals: List[str] = field(
        default_factory=lambda: list(DEFAULT_TEMPLATE_PLURALS)
    )


@dataclass
class Settings:
    """全局配置类"""

    # 基础配置
    app_name: str = "MeshConsole"
    version: str = "0.1.0"
    log_level: str = "INFO"

    # 子配置
    k8s: K8sConfig = field(default_factory=K8sConfig)
    istio: IstioConfig = field(default_factory=IstioConfig)

    def __init__(self, config_file: Optional[str] = None):
        """初始化配置"""
        # 设置默认值
        self.app_name = "MeshConsole"
        self.version = "0.1.0"
        self.k8s = K8sConfig()
        self.istio = IstioConfig()

        # 从环境变量加载
        self._load_from_env()

        # 从配置文件加载
        if config_file:
            self._load_from_file(config_file)

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 基础配置
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # K8s配置
        self.k8s.in_cluster = os.getenv("K8S_IN_CLUSTER", "true").lower() == "true"
        if kubeconfig := os.getenv("KUBECONFIG"):
            self.k8s.kubeconfig_path = kubeconfig

        # Istio配置
        if networking_version := os.getenv("ISTIO_NETWORKING_VERSION"):
            self.istio.networking_version = networking_version
        if config_version := os.getenv("ISTIO_CONFIG_VERSION"):
            self.istio.config_version = config_version
        if timeout := os.getenv("ISTIO_REQUEST_TIMEOUT"):
            try:
                self.istio.request_timeout = int(timeout)
            except ValueError:
                logger.warning("ISTIO_REQUEST_TIMEOUT无效，使用默认值: %s", timeout)
        if max_requests := os.getenv("ISTIO_MAX_CONCURRENT_REQUESTS"):
            try:
                self.istio.max_concurrent_requests = int(max_requests)
            except ValueError:
                logger.warning(
                    "ISTIO_MAX_CONCURRENT_REQUESTS无效，使用默认值: %s", max_requests
                )

    def _load_from_file(self, config_file: str):
        """从配置文件加载配置"""
        config_path = Path(config_file)
        if not config_path.exists():
            logger.warning("配置文件不存在: %s", config_file)
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)

            # 更新配置
            self._update_from_dict(config_data)
        except (OSError, yaml.YAMLError) as e:
            logger.error("加载配置文件失败: %s", e)

    def _update_from_dict(self, config_data: Dict[str, Any]):
        """从字典更新配置"""
        if not config_data:
            return

        # 基础配置
        for key in ["app_name", "version", "log_level"]:
            if key in config_data:
                setattr(self, key, config_data[key])

        # K8s配置
        if "k8s" in config_data:
            k8s_config = config_data["k8s"]
            for key in ["in_cluster", "kubeconfig_path"]:
                if key in k8s_config:
                    setattr(self.k8s, key, k8s_config[key])

        # Istio配置
        if "istio" in config_data:
            istio_config = config_data["istio"]
            for key in [
                "networking_group",
                "networking_version",
                "config_group",
                "config_version",
                "request_timeout",
                "max_concurrent_requests",
                "adapter_plurals",
                "template_plurals",
            ]:
                if key in istio_config:
                    setattr(self.istio, key, istio_config[key])
