"""
客户端配置管理

使用 pydantic-settings 实现类型安全的配置管理：
- 支持从环境变量读取配置（统一前缀 QNAMAKER_）
- 支持从 .env 文件读取配置
- 提供默认值，开箱即用

配置优先级（从高到低）：
    1. 构造参数（RequestDispatcher / OperationTracker 显式传入）
    2. 环境变量
    3. .env 文件
    4. 代码中的默认值

使用示例：
    from qnamaker.config import get_settings
    settings = get_settings()
    print(settings.management_base_url)
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    全局配置类

    所有配置项都可以通过环境变量覆盖，环境变量名为 QNAMAKER_ + 字段名（不区分大小写）。
    例如：QNAMAKER_POLL_DELAY_SECONDS=0.5 会覆盖 poll_delay_seconds 字段。
    """

    # ==================== 基础配置 ====================
    environment: str = "dev"       # 运行环境：dev/staging/prod
    log_level: str = "INFO"        # 日志级别：DEBUG/INFO/WARNING/ERROR
    log_json: bool | None = None   # 日志格式：True=JSON，None=自动（prod用JSON）

    # ==================== 管理 API 配置 ====================
    # 管理接口（create/update/publish/operations）的固定地址，带版本前缀
    management_base_url: str = "https://westus.api.cognitive.microsoft.com/qnamaker/v4.0"
    request_timeout: float = Field(default=30.0, gt=0)  # 单次 HTTP 请求超时（秒）

    # ==================== 操作轮询配置 ====================
    # 服务端限制 3 qps：每发出 poll_batch_size 次状态查询后暂停 poll_delay_seconds
    poll_batch_size: int = Field(default=3, ge=1)
    poll_delay_seconds: float = Field(default=1.0, ge=0)
    # 轮询总超时（秒），None 表示一直等待直到终态
    poll_timeout_seconds: float | None = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="QNAMAKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    获取配置单例

    使用 @lru_cache 缓存配置实例，整个进程只解析一次环境变量与 .env 文件。
    测试中修改环境变量后需调用 get_settings.cache_clear()。
    """
    return Settings()
