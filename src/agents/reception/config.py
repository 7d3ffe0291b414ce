from pydantic_settings import SettingsConfigDict

from common.settings import BaseAppSettings


class Settings(BaseAppSettings):
    TOPIC_WA_IN: str = "serve.vm.whatsapp.in"
    TOPIC_WA_OUT: str = "serve.vm.whatsapp.out"
    GROUP_ID: str = "vm-agent-reception"
    AGENT_NAME: str = "reception"
    OUTBOUND_MODE: str = "mcp"  # "mcp" or "kafka"
    PORT: int = 8001
    # Reference tables
    PRICES_CSV: str = "precos.csv"
    ROSTER_CSV: str = "plantao.csv"
    # Menu: "full" (9 options) or "reduced" (no follow-up)
    MENU_VARIANT: str = "full"
    REMENU_DELAY_SECONDS: float = 2.0
    SESSION_IDLE_TIMEOUT_SECONDS: float = 1800  # 0 disables eviction
    TIMEZONE: str = "America/Sao_Paulo"
    ASSISTANT_NAME: str = "Hospital"
    DEFAULT_CONTACT_NAME: str = "Usuário"
    ENDOSCOPY_DAYS: str = "07/03,08/03,14/03,15/03,28/03,31/03"
    # only one-to-one chats; empty accepts every address
    CONTACT_SUFFIX: str = "@c.us"
    model_config = SettingsConfigDict(env_file=".env",
                                      env_file_encoding="utf-8",
                                      extra="ignore")

    @property
    def endoscopy_days(self) -> list[str]:
        return [d.strip() for d in self.ENDOSCOPY_DAYS.split(",") if d.strip()]


settings = Settings()
