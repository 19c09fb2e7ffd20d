from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./dapi.db"

    # sponsor account paying for every deployment
    sponsor_mnemonic: str = ""

    phala_anchor_path: str = "./artifacts/PhalaAnchor.json"
    druntime_fat_path: str = "./artifacts/saas3_druntime.contract"
    druntime_fat_v2_path: str = "./artifacts/saas3_druntime_v2.contract"

    js_engine_code_hash: str = ""
    protocol_address: str = "0x0000000000000000000000000000000000000000"
    anchor_config_blob: str = "0x"
    runtime_api_key: str = ""

    phat_composer_url: str = "http://localhost:8787"
    phat_composer_timeout: float = 120.0

    # "deploy_then_configure" | "init_config"
    deploy_workflow: str = "deploy_then_configure"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
