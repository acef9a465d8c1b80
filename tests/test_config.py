import logging

from config import TestingConfig, create_directories, validate_config
from models import User


def settings(**overrides):
    values = {key: getattr(TestingConfig, key) for key in dir(TestingConfig) if key.isupper()}
    values.update(overrides)
    return values


def test_testing_config_is_valid(tmp_path):
    assert validate_config(settings(UPLOAD_FOLDER=str(tmp_path))) == []


def test_validate_config_reports_problems(tmp_path):
    problems = validate_config(settings(
        SECRET_KEY='dev-secret-key',
        SQLALCHEMY_DATABASE_URI='',
        UPLOAD_FOLDER=str(tmp_path),
        CLASSIFIER_ENABLED=True,
        CLASSIFIER_TOKEN='',
        LOG_LEVEL='LOUD'
    ))

    assert 'SECRET_KEY should be at least 32 characters long' in problems
    assert 'SECRET_KEY is still the development default' in problems
    assert 'DATABASE_URL is not set' in problems
    assert any('HUGGING_FACE_TOKEN' in problem for problem in problems)
    assert any('LOG_LEVEL' in problem for problem in problems)


def test_create_directories(tmp_path):
    uploads = tmp_path / 'uploads'
    database = tmp_path / 'data' / 'citizen.db'

    create_directories({'UPLOAD_FOLDER': str(uploads), 'SQLALCHEMY_DATABASE_URI': f'sqlite:///{database}'})

    assert uploads.is_dir()
    assert database.parent.is_dir()


def test_check_config_command(app):
    result = app.test_cli_runner().invoke(args=['check-config'])

    assert result.exit_code == 0
    assert 'Configuration looks good' in result.output


def test_check_config_command_fails_on_problems(app):
    app.config['SECRET_KEY'] = 'short'

    result = app.test_cli_runner().invoke(args=['check-config'])

    assert result.exit_code == 1
    assert 'SECRET_KEY should be at least 32 characters long' in result.output


def test_init_db_seed(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['init-db', '--seed'])
    assert result.exit_code == 0
    assert 'admin@citizen.app' in result.output

    # Seeding twice does not duplicate accounts
    runner.invoke(args=['init-db', '--seed'])
    with app.app_context():
        assert User.query.filter_by(email='admin@citizen.app').count() == 1

    response = app.test_client().post('/api/auth/login', json={
        'email': 'admin@citizen.app',
        'password': 'admin123'
    })
    assert response.status_code == 200
    assert response.get_json()['data']['user_type'] == 'admin'


def test_lowercase_log_level_starts(tmp_path):
    from app import create_app

    config = type('LowercaseLogConfig', (TestingConfig,), {
        'UPLOAD_FOLDER': str(tmp_path),
        'LOG_LEVEL': 'info'
    })

    assert validate_config(settings(UPLOAD_FOLDER=str(tmp_path), LOG_LEVEL='info')) == []
    app = create_app(config)
    assert app.logger.level == logging.INFO
