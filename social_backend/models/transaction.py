# social_backend/models/transaction.py
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from firebase_admin import firestore

class TransactionType(Enum):
    """지갑 잔액 변동 유형"""
    REWARD = "reward"

@dataclass
class Transaction:
    """
    'users/{uid}/transactions' 서브컬렉션 문서. 생성 후 수정하지 않는 추가 전용 기록입니다.
    """
    type: TransactionType
    amount: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'amount': self.amount,
            'description': self.description,
            'createdAt': firestore.SERVER_TIMESTAMP,
        }
