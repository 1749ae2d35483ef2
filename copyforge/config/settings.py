from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Dict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for workers and invite acceptance

    # Model providers
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Model routing ("provider/model"), one per task category
    model_reasoning: str = "anthropic/claude-sonnet-4-5-20250929"
    model_generation: str = "anthropic/claude-sonnet-4-5-20250929"
    model_analysis: str = "anthropic/claude-sonnet-4-5-20250929"
    model_quick: str = "anthropic/claude-haiku-4-5-20251001"
    model_vision: str = "openai/gpt-4o"
    default_chat_model: str = "anthropic/claude-sonnet-4-5-20250929"
    llm_temperature: float = 0.7
    llm_max_retries: int = 2
    llm_timeout: float = 120.0

    # rules | llm
    orchestrator_routing: str = "rules"

    # RAG
    embedding_model: str = "text-embedding-3-small"
    rag_default_limit: int = 5
    rag_min_similarity: float = 0.6
    rag_vector_weight: float = 0.7
    rag_keyword_weight: float = 0.3
    rag_fusion: str = "weighted"  # weighted | rrf

    # Job queue
    queue_batch_size: int = 5
    queue_max_retries: int = 3
    queue_processing_timeout: int = 300  # seconds before a processing job is reclaimed
    cron_secret: Optional[str] = None

    # Email (Resend)
    resend_api_key: Optional[str] = None
    email_from: str = "onboarding@resend.dev"
    app_url: str = "http://localhost:3000"

    # App
    app_name: str = "copyforge-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_model_routing(self) -> Dict[str, str]:
        return {
            "reasoning": self.model_reasoning,
            "generation": self.model_generation,
            "analysis": self.model_analysis,
            "quick": self.model_quick,
            "vision": self.model_vision,
        }

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
