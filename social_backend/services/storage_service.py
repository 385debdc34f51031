# social_backend/services/storage_service.py
import logging
from flask import Flask
from firebase_admin import storage

class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 범용 서비스 클래스입니다.
    사용자가 올린 모든 파일은 'users/{user_id}/' 경로 아래에 저장됩니다.
    """

    def __init__(self):
        """
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    @staticmethod
    def user_prefix(user_id: str) -> str:
        return f"users/{user_id}/"

    def delete_user_files(self, user_id: str) -> int:
        """
        사용자 네임스페이스('users/{user_id}/') 아래의 모든 파일을 삭제합니다.
        Firestore 삭제와 트랜잭션으로 묶이지 않는 best-effort 작업입니다.

        :param user_id: 파일을 삭제할 사용자 ID
        :return: 삭제된 파일 수
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        prefix = self.user_prefix(user_id)
        deleted = 0
        for blob in self.bucket.list_blobs(prefix=prefix):
            blob.delete()
            deleted += 1

        logging.info(f"Storage 파일 삭제 완료 (prefix: {prefix}, count: {deleted})")
        return deleted
