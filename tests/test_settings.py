from ticket_enhancements.config.settings import Settings, get_package_data_dir


def test_defaults(monkeypatch, tmp_path):
    for name in ('TICKET_ENHANCEMENTS_DATA_DIR', 'API_HOST', 'API_PORT', 'UI_PORT', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.load(project_root=tmp_path)
    assert settings.data_dir == get_package_data_dir()
    assert (settings.api_host, settings.api_port, settings.ui_port) == ('127.0.0.1', 8000, 8501)


def test_environment_overrides(monkeypatch, tmp_path):
    """Server scripts and the engine read their config from the environment."""
    monkeypatch.setenv('TICKET_ENHANCEMENTS_DATA_DIR', str(tmp_path))
    monkeypatch.setenv('API_HOST', '0.0.0.0')
    monkeypatch.setenv('API_PORT', '9000')
    monkeypatch.setenv('UI_PORT', '9501')
    monkeypatch.setenv('RATES_API_URL', 'https://rates.test/v1/')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    settings = Settings.load(project_root=tmp_path)
    assert settings.data_dir == tmp_path
    assert (settings.api_host, settings.api_port, settings.ui_port) == ('0.0.0.0', 9000, 9501)
    assert settings.rates_api_url == 'https://rates.test/v1'
    assert settings.log_level == 'DEBUG'
