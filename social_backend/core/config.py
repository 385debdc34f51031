# social_backend/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명에 사용하는 비밀 키. 토큰 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # False로 두면 create_app에서 firebase_admin 초기화를 건너뜁니다. (테스트 더블 사용 시)
    FIREBASE_INIT = True

    # Expo 푸시 게이트웨이. 요청은 재시도하지 않습니다.
    PUSH_GATEWAY_URL = os.getenv('PUSH_GATEWAY_URL', 'https://exp.host/--/api/v2/push/send')
    PUSH_ACCESS_TOKEN = os.getenv('PUSH_ACCESS_TOKEN')
    PUSH_REQUEST_TIMEOUT = float(os.getenv('PUSH_REQUEST_TIMEOUT', 10))

    # Firestore 트리거 이벤트를 전달하는 플랫폼과 공유하는 비밀 값
    TRIGGER_SHARED_SECRET = os.getenv('TRIGGER_SHARED_SECRET')

    # settings/rewardRule 문서가 없거나 값이 비어 있을 때 사용하는 기본값
    DEFAULT_FOLLOWER_THRESHOLD = int(os.getenv('DEFAULT_FOLLOWER_THRESHOLD', 5000))
    DEFAULT_REWARD_AMOUNT = int(os.getenv('DEFAULT_REWARD_AMOUNT', 1000))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. Firebase 대신 테스트 더블을 주입합니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_INIT = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = 'test-bucket'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    TRIGGER_SHARED_SECRET = 'test-trigger-secret'
    PUSH_GATEWAY_URL = 'https://push.test/send'

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app 함수에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
