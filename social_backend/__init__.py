# social_backend/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Optional
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from social_backend.core.config import config_by_name
from social_backend.core.cli import reward_rule_cli

# - API 블루프린트
from social_backend.api.auth.routes import auth_bp
from social_backend.api.users.routes import users_bp
from social_backend.api.follows.routes import follows_bp
from social_backend.api.chats.routes import chats_bp
from social_backend.api.wallet.routes import wallet_bp
from social_backend.api.triggers.routes import triggers_bp

# - 서비스 모듈
from social_backend.services.storage_service import StorageService
from social_backend.services.notification_service import PushNotificationService
from social_backend.api.auth.services import auth_service
from social_backend.api.users.services import UserService
from social_backend.api.users.purge_services import AccountPurgeService
from social_backend.api.follows.services import FollowService
from social_backend.api.chats.services import ChatService
from social_backend.api.wallet.services import RewardService

def create_app(config_name: Optional[str] = None):
    """
    Flask 애플리케이션 팩토리 함수.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    if app.config.get('FIREBASE_INIT', True) and not firebase_admin._apps:
        cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
        })

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용 서비스 먼저 생성
    try:
        storage_instance = StorageService()
        storage_instance.init_app(app)
        app.services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    notification_instance = PushNotificationService()
    notification_instance.init_app(app)
    app.services['notifications'] = notification_instance

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['users'] = UserService()
    app.services['follows'] = FollowService()
    app.services['rewards'] = RewardService(
        notification_service=app.services['notifications'],
        default_threshold=app.config['DEFAULT_FOLLOWER_THRESHOLD'],
        default_amount=app.config['DEFAULT_REWARD_AMOUNT']
    )
    app.services['chats'] = ChatService(notification_service=app.services['notifications'])
    app.services['account_purge'] = AccountPurgeService(storage_service=app.services['storage'])

    # - 인증 서비스 (앱 컨텍스트 필요)
    auth_service.init_app(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return auth_service.is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 및 CLI 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(follows_bp, url_prefix='/api/users')
    app.register_blueprint(chats_bp, url_prefix='/api/chats')
    app.register_blueprint(wallet_bp, url_prefix='/api/wallet')
    app.register_blueprint(triggers_bp, url_prefix='/api/triggers')
    app.cli.add_command(reward_rule_cli)

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # HTTP 예외(404, 405 등)는 원래 상태 코드를 유지합니다.
        if isinstance(err, HTTPException):
            return jsonify({"error_code": err.name.upper().replace(' ', '_'), "message": err.description}), err.code
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
