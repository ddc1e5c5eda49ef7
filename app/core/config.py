# app/core/config.py

from typing import List
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# 프로젝트의 루트 디렉토리 경로를 계산합니다.
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    애플리케이션의 모든 설정을 정의하는 Pydantic BaseSettings 모델입니다.
    환경 변수 및 .env 파일에서 값을 자동으로 로드합니다.
    """

    # --- Pydantic Settings 설정 ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),  # 프로젝트 루트의 .env 파일
        env_file_encoding='utf-8',
        extra='ignore',                      # 모델에 없는 변수는 무시
        case_sensitive=True
    )

    # --- 애플리케이션 기본 설정 ---
    APP_NAME: str = "AutoCare Scheduling API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Service-center staff scheduling API (shifts, work centers, work schedules)"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Enable debug mode for SQL echo and detailed error messages")
    LOG_LEVEL: str = Field("INFO", description="Root logging level (DEBUG, INFO, WARNING, ...)")

    # --- 데이터베이스 설정 ---
    DATABASE_URL: SecretStr = Field(..., description="SQLAlchemy async database URL (postgresql+asyncpg://...)")

    # --- JWT (JSON Web Token) 설정 ---
    SECRET_KEY: SecretStr = Field(..., description="Secret key for JWT token signing. Keep this highly secure!")
    ALGORITHM: str = Field("HS256", description="Algorithm used for JWT signing (e.g., HS256)")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30, description="Access token expiration time in minutes")

    # --- 시간대 설정 ---
    # 모든 일자 경계(하루의 시작/끝) 계산은 서비스센터 현지 시간 기준입니다.
    TIMEZONE: str = Field("Asia/Ho_Chi_Minh", description="IANA time zone of the service centers")

    # --- ARQ (Redis) 설정 ---
    REDIS_HOST: str = Field("localhost", description="Redis host for the ARQ worker pool")
    REDIS_PORT: int = Field(6379, description="Redis port for the ARQ worker pool")

    # --- CORS 설정 ---
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


settings = Settings()
