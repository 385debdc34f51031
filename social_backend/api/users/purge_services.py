# social_backend/api/users/purge_services.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from firebase_admin import firestore, auth as firebase_auth

from social_backend.services.storage_service import StorageService

# Firestore 배치 하나에 담을 수 있는 최대 쓰기 수
MAX_BATCH_WRITES = 500

class PurgeState(Enum):
    """회원 탈퇴(계정 삭제) 진행 상태. 롤백은 없습니다."""
    REQUESTED = "requested"
    DATA_PURGED = "data_purged"
    FILES_PURGED = "files_purged"
    CREDENTIAL_REVOKED = "credential_revoked"
    FAILED = "failed"

@dataclass
class PurgeResult:
    user_id: str
    state: PurgeState = PurgeState.REQUESTED
    completed_steps: List[str] = field(default_factory=list)
    failed_steps: List[str] = field(default_factory=list)
    deleted_documents: int = 0
    updated_documents: int = 0
    deleted_files: int = 0

class AccountPurgeError(Exception):
    """계정 삭제가 중간 단계에서 실패했을 때 발생합니다. 이미 끝난 단계는 되돌리지 않습니다."""
    def __init__(self, user_id: str, failed_step: str, result: PurgeResult, cause: Optional[Exception] = None):
        self.user_id = user_id
        self.failed_step = failed_step
        self.result = result
        self.cause = cause
        super().__init__(
            f"계정 삭제 실패 (user_id: {user_id}, step: {failed_step}, completed: {result.completed_steps})"
        )

class _ChunkedBatch:
    """MAX_BATCH_WRITES 단위로 나누어 순서대로 커밋하는 쓰기 배치."""
    def __init__(self, db):
        self.db = db
        self.operations = []
        self.committed_batches = 0
        self._deleted_paths = set()

    def delete(self, ref):
        # 같은 문서가 여러 경로로 수집될 수 있습니다. (본인 게시글의 본인 댓글 등)
        if ref.path in self._deleted_paths:
            return
        self._deleted_paths.add(ref.path)
        self.operations.append(('delete', ref, None))

    def update(self, ref, data):
        self.operations.append(('update', ref, data))

    def commit(self):
        for start in range(0, len(self.operations), MAX_BATCH_WRITES):
            batch = self.db.batch()
            for op, ref, data in self.operations[start:start + MAX_BATCH_WRITES]:
                if op == 'delete':
                    batch.delete(ref)
                else:
                    batch.update(ref, data)
            batch.commit()
            self.committed_batches += 1

class AccountPurgeService:
    """
    사용자 본인의 요청으로 계정과 모든 소유 데이터를 영구 삭제하는 서비스 클래스.

    순서:
    1~6. 사용자 문서, 게시글, 댓글, 채팅 참여 정보, 팔로우 관계, 거래 내역을 배치로 삭제
    7.   배치 커밋 (DATA_PURGED)
    8.   Storage 'users/{uid}/' 아래 파일 삭제 (best-effort, FILES_PURGED)
    9.   Firebase Auth 계정 삭제 (CREDENTIAL_REVOKED)

    다른 사용자가 가진 상대편 팔로우 문서도 함께 삭제합니다. 그 삭제 이벤트로
    Follower-Count 트리거가 남은 사용자들의 팔로워/팔로잉 수를 줄입니다.
    """
    def __init__(self, storage_service: StorageService):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')
        self.posts_ref = self.db.collection('posts')
        self.chats_ref = self.db.collection('chats')
        self.storage_service = storage_service

    def purge_user_account(self, user_id: str) -> PurgeResult:
        """
        계정 삭제 전체 단계를 실행합니다.

        :param user_id: 삭제를 요청한(인증된) 사용자 ID
        :return: 단계별 처리 결과
        :raises AccountPurgeError: 문서 삭제 또는 인증 정보 삭제 단계가 실패한 경우
        """
        result = PurgeResult(user_id=user_id)
        batch = _ChunkedBatch(self.db)
        user_ref = self.users_ref.document(user_id)

        try:
            # 1. 사용자 프로필 문서
            batch.delete(user_ref)
            result.completed_steps.append('collect_profile')

            # 2. 사용자가 작성한 게시글
            for doc in self.posts_ref.where('userId', '==', user_id).stream():
                for comment_doc in doc.reference.collection('comments').stream():
                    batch.delete(comment_doc.reference)
                batch.delete(doc.reference)
            result.completed_steps.append('collect_posts')

            # 3. 모든 게시글에 걸친 사용자 댓글
            for doc in self.db.collection_group('comments').where('userId', '==', user_id).stream():
                batch.delete(doc.reference)
            result.completed_steps.append('collect_comments')

            # 4. 참여 중인 채팅방
            for doc in self.chats_ref.where('participants', 'array_contains', user_id).stream():
                participants = doc.to_dict().get('participants') or []
                if all(uid == user_id for uid in participants):
                    for message_doc in doc.reference.collection('messages').stream():
                        batch.delete(message_doc.reference)
                    batch.delete(doc.reference)
                else:
                    batch.update(doc.reference, {'participants': firestore.ArrayRemove([user_id])})
            result.completed_steps.append('collect_chats')

            # 5. 팔로우 관계 (양쪽 모두)
            for doc in user_ref.collection('following').stream():
                batch.delete(doc.reference)
                batch.delete(self.users_ref.document(doc.id).collection('followers').document(user_id))
            for doc in user_ref.collection('followers').stream():
                batch.delete(doc.reference)
                batch.delete(self.users_ref.document(doc.id).collection('following').document(user_id))
            result.completed_steps.append('collect_follow_edges')

            # 6. 거래 내역
            for doc in user_ref.collection('transactions').stream():
                batch.delete(doc.reference)
            result.completed_steps.append('collect_transactions')

            # 7. 커밋
            batch.commit()
        except Exception as e:
            result.state = PurgeState.FAILED
            result.failed_steps.append('commit_documents')
            logging.error(
                f"계정 문서 삭제 실패 (user_id: {user_id}, 완료 단계: {result.completed_steps}, "
                f"커밋된 배치: {batch.committed_batches}): {e}", exc_info=True
            )
            raise AccountPurgeError(user_id, 'commit_documents', result, e) from e

        result.deleted_documents = sum(1 for op, _, _ in batch.operations if op == 'delete')
        result.updated_documents = len(batch.operations) - result.deleted_documents
        result.completed_steps.append('commit_documents')
        result.state = PurgeState.DATA_PURGED
        logging.info(
            f"계정 문서 삭제 완료 (user_id: {user_id}, 삭제: {result.deleted_documents}, "
            f"수정: {result.updated_documents}, 배치: {batch.committed_batches})"
        )

        # 8. Storage 파일 (실패해도 인증 정보 삭제는 진행)
        try:
            result.deleted_files = self.storage_service.delete_user_files(user_id)
            result.completed_steps.append('delete_files')
            result.state = PurgeState.FILES_PURGED
        except Exception as e:
            result.failed_steps.append('delete_files')
            logging.error(f"Storage 파일 삭제 실패, 수동 정리가 필요합니다 (user_id: {user_id}): {e}", exc_info=True)

        # 9. 인증 정보
        try:
            self.revoke_credential(user_id)
        except Exception as e:
            failed_state = result.state
            result.failed_steps.append('revoke_credential')
            result.state = PurgeState.FAILED
            logging.error(
                f"인증 정보 삭제 실패: 데이터는 삭제되었지만 로그인이 가능한 상태입니다 "
                f"(user_id: {user_id}, 직전 상태: {failed_state.value})", exc_info=True
            )
            raise AccountPurgeError(user_id, 'revoke_credential', result, e) from e

        result.completed_steps.append('revoke_credential')
        result.state = PurgeState.CREDENTIAL_REVOKED
        logging.info(f"계정 삭제 완료 (user_id: {user_id})")
        return result

    def revoke_credential(self, user_id: str) -> None:
        """
        Firebase Authentication에서 사용자를 삭제합니다. 단독으로 다시 실행할 수 있습니다.
        이미 없는 사용자는 삭제된 것으로 간주합니다.
        """
        try:
            firebase_auth.delete_user(user_id)
            logging.info(f"Firebase Auth 사용자 삭제 성공 (user_id: {user_id}).")
        except firebase_auth.UserNotFoundError:
            logging.warning(f"Firebase Auth에서 이미 삭제된 사용자입니다 (user_id: {user_id}).")
