# social_backend/api/wallet/schemas.py
from marshmallow import Schema, fields

class TransactionResponseSchema(Schema):
    """지갑 거래 내역 한 건의 응답 형식."""
    transaction_id = fields.Str(required=True)
    type = fields.Str(required=True)
    amount = fields.Int(required=True)
    description = fields.Str(required=True)
    created_at = fields.DateTime(attribute='createdAt', allow_none=True)

class WalletResponseSchema(Schema):
    """GET /api/wallet 응답 형식."""
    balance = fields.Int(required=True)
    reward_claimed = fields.Bool(required=True)
    transactions = fields.List(fields.Nested(TransactionResponseSchema), required=True)

class RewardRuleResponseSchema(Schema):
    """GET /api/wallet/reward-rule 응답 형식."""
    follower_threshold = fields.Int(required=True)
    reward_amount = fields.Int(required=True)
