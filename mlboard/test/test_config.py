from mlboard.server.config import ServerConfig


class TestServerConfig:

    def test_defaults(self):
        config = ServerConfig.from_env({})
        assert config == ServerConfig()
        assert config.port == 3001
        assert config.project_name == "project"
        assert config.seed_demo is True

    def test_from_env(self):
        config = ServerConfig.from_env({
            "MLBOARD_HOST": "127.0.0.1",
            "MLBOARD_PORT": "8080",
            "MLBOARD_LOG_LEVEL": "debug",
            "MLBOARD_PROJECT_NAME": "mnist",
            "MLBOARD_SEED_DEMO": "no",
        })
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.log_level == "DEBUG"
        assert config.project_name == "mnist"
        assert config.seed_demo is False
