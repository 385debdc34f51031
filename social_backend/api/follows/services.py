# social_backend/api/follows/services.py
import logging
from firebase_admin import firestore

from social_backend.services.firestore_service import (
    processed_event_ref, is_event_processed, mark_event_processed
)

class FollowService:
    """
    팔로우 관계와 팔로워/팔로잉 수 집계를 담당하는 서비스 클래스.
    - 팔로우 관계는 양쪽 사용자 문서 아래에 한 번씩 저장됩니다.
      (users/{owner}/following/{target}, users/{target}/followers/{owner})
    - followersCount / followingCount 는 reconcile_follower_counts 만 갱신합니다.
    """
    def __init__(self):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')

    def _edge_refs(self, owner_id: str, target_id: str):
        following_ref = self.users_ref.document(owner_id).collection('following').document(target_id)
        follower_ref = self.users_ref.document(target_id).collection('followers').document(owner_id)
        return following_ref, follower_ref

    def follow_user(self, owner_id: str, target_id: str) -> bool:
        """
        owner가 target을 팔로우합니다. 두 관계 문서를 하나의 트랜잭션으로 씁니다.

        :return: 새 관계가 생성되면 True, 이미 팔로우 중이면 False
        """
        if owner_id == target_id:
            raise ValueError("자기 자신을 팔로우할 수 없습니다.")

        transaction = self.db.transaction()

        @firestore.transactional
        def _follow_in_transaction(transaction, owner_id, target_id):
            # 탈퇴한 사용자의 관계 문서가 다시 생기지 않도록 양쪽 모두 확인합니다.
            owner_doc = self.users_ref.document(owner_id).get(transaction=transaction)
            if not owner_doc.exists:
                raise ValueError("팔로우를 요청한 사용자를 찾을 수 없습니다.")
            target_doc = self.users_ref.document(target_id).get(transaction=transaction)
            if not target_doc.exists:
                raise ValueError("팔로우할 사용자를 찾을 수 없습니다.")

            following_ref, follower_ref = self._edge_refs(owner_id, target_id)
            following_doc = following_ref.get(transaction=transaction)
            follower_doc = follower_ref.get(transaction=transaction)
            if following_doc.exists and follower_doc.exists:
                return False

            edge_data = {'createdAt': firestore.SERVER_TIMESTAMP}
            # 한쪽만 남아 있던 관계도 여기서 복구됩니다.
            if not following_doc.exists:
                transaction.set(following_ref, edge_data)
            if not follower_doc.exists:
                transaction.set(follower_ref, edge_data)
            return True

        created = _follow_in_transaction(transaction, owner_id, target_id)
        if created:
            logging.info(f"팔로우 관계 생성: {owner_id} -> {target_id}")
        return created

    def unfollow_user(self, owner_id: str, target_id: str) -> bool:
        """
        owner의 target 팔로우를 취소합니다. 두 관계 문서를 하나의 트랜잭션으로 삭제합니다.

        :return: 관계가 삭제되면 True, 원래 팔로우하지 않았으면 False
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _unfollow_in_transaction(transaction, owner_id, target_id):
            following_ref, follower_ref = self._edge_refs(owner_id, target_id)
            following_doc = following_ref.get(transaction=transaction)
            follower_doc = follower_ref.get(transaction=transaction)
            if not following_doc.exists and not follower_doc.exists:
                return False

            if following_doc.exists:
                transaction.delete(following_ref)
            if follower_doc.exists:
                transaction.delete(follower_ref)
            return True

        removed = _unfollow_in_transaction(transaction, owner_id, target_id)
        if removed:
            logging.info(f"팔로우 관계 삭제: {owner_id} -> {target_id}")
        return removed

    def reconcile_follower_counts(self, event_id: str, user_id: str, follower_id: str, delta: int) -> bool:
        """
        followers/{user_id}/{follower_id} 관계 문서 생성(+1) 또는 삭제(-1) 이벤트를 집계에 반영합니다.
        - user_id의 followersCount 와 follower_id의 followingCount 를 하나의 트랜잭션에서 갱신합니다.
        - 같은 event_id로 다시 호출되면 아무 것도 하지 않습니다.
        - 존재하지 않는 사용자 문서(탈퇴한 사용자 등)는 건너뜁니다.
        - 카운트는 0 아래로 내려가지 않습니다.

        :param event_id: 플랫폼이 부여한 이벤트 ID (재전송 시 동일)
        :param user_id: 팔로우 당한 사용자 ID
        :param follower_id: 팔로우한 사용자 ID
        :param delta: 관계 생성 시 1, 삭제 시 -1
        :return: 이번 호출에서 집계가 반영되었으면 True
        """
        if delta not in (1, -1):
            raise ValueError(f"delta는 1 또는 -1이어야 합니다: {delta}")

        event_ref = processed_event_ref(self.db, event_id)
        followed_ref = self.users_ref.document(user_id)
        follower_ref = self.users_ref.document(follower_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _reconcile_in_transaction(transaction):
            # Firestore 트랜잭션은 모든 읽기가 쓰기보다 먼저 와야 합니다.
            if is_event_processed(transaction, event_ref):
                return False
            followed_doc = followed_ref.get(transaction=transaction)
            follower_doc = follower_ref.get(transaction=transaction)

            if followed_doc.exists:
                current = followed_doc.to_dict().get('followersCount') or 0
                transaction.update(followed_ref, {'followersCount': max(current + delta, 0)})
            if follower_doc.exists:
                current = follower_doc.to_dict().get('followingCount') or 0
                transaction.update(follower_ref, {'followingCount': max(current + delta, 0)})

            mark_event_processed(transaction, event_ref, 'reconcile_follower_counts')
            return True

        applied = _reconcile_in_transaction(transaction)
        if applied:
            logging.info(f"팔로워 수 집계 반영 (event: {event_id}, {follower_id} -> {user_id}, delta: {delta})")
        else:
            logging.info(f"이미 처리된 팔로워 이벤트 무시 (event: {event_id})")
        return applied
