# social_backend/conftest.py
"""
테스트 공용 픽스처.

Firestore / Storage / Firebase Auth / 푸시 게이트웨이를 메모리 기반 테스트 더블로 바꿔 끼웁니다.
- firestore.client()         -> FakeFirestore
- firestore.transactional    -> 전역 락 안에서 실행 후 커밋 (직렬화 가능한 트랜잭션 흉내)
- storage.bucket()           -> FakeBucket
- auth.delete_user / verify_id_token -> FakeAuth
- requests.post (푸시)        -> FakePushGateway
"""
import copy
import functools
import itertools
import threading
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import requests
from google.api_core.exceptions import InvalidArgument, NotFound
from firebase_admin import firestore, storage, auth as firebase_auth

MAX_BATCH_WRITES = 500

# =====================================================================================
# Firestore 테스트 더블
# =====================================================================================

def _parent_path(path):
    return path.rsplit('/', 1)[0]

def _get_field(data, field_path):
    value = data
    for part in field_path.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self._data = copy.deepcopy(data) if data is not None else None

    @property
    def id(self):
        return self.reference.id

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path):
        return _get_field(self._data or {}, field_path)


class FakeDocumentReference:
    def __init__(self, db, path):
        self._db = db
        self.path = path

    def __eq__(self, other):
        return isinstance(other, FakeDocumentReference) and other.path == self.path

    def __hash__(self):
        return hash(self.path)

    @property
    def id(self):
        return self.path.rsplit('/', 1)[-1]

    @property
    def parent(self):
        return FakeCollectionReference(self._db, _parent_path(self.path))

    def collection(self, collection_id):
        return FakeCollectionReference(self._db, f"{self.path}/{collection_id}")

    def get(self, transaction=None):
        return self._db._snapshot(self.path)

    def set(self, data, merge=False):
        self._db._commit([('set', self.path, data, merge)])

    def update(self, data):
        self._db._commit([('update', self.path, data, False)])

    def delete(self):
        self._db._commit([('delete', self.path, None, False)])


class FakeQuery:
    def __init__(self, db, path=None, collection_id=None, filters=(), orders=(), limit_count=None):
        self._db = db
        self._path = path                  # 일반 컬렉션 쿼리
        self._collection_id = collection_id  # 컬렉션 그룹 쿼리
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_count

    def _copy(self, **changes):
        params = dict(path=self._path, collection_id=self._collection_id, filters=self._filters,
                      orders=self._orders, limit_count=self._limit)
        params.update(changes)
        return FakeQuery(self._db, **params)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + ((field_path, op_string, value),))

    def order_by(self, field_path, direction='ASCENDING'):
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count):
        return self._copy(limit_count=count)

    def _in_scope(self, path):
        if self._path is not None:
            return _parent_path(path) == self._path
        segments = path.split('/')
        return len(segments) >= 2 and segments[-2] == self._collection_id

    @staticmethod
    def _matches(data, field_path, op_string, value):
        field_value = _get_field(data, field_path)
        if op_string == '==':
            return field_value == value
        if op_string == 'array_contains':
            return isinstance(field_value, list) and value in field_value
        if op_string == 'in':
            return field_value in value
        if op_string == '>=':
            return field_value is not None and field_value >= value
        if op_string == '<':
            return field_value is not None and field_value < value
        raise NotImplementedError(op_string)

    def stream(self, transaction=None):
        with self._db._lock:
            items = [(path, copy.deepcopy(data)) for path, data in sorted(self._db._docs.items())
                     if self._in_scope(path)]
        items = [(path, data) for path, data in items
                 if all(self._matches(data, *f) for f in self._filters)]
        for field_path, direction in reversed(self._orders):
            items = [(path, data) for path, data in items if _get_field(data, field_path) is not None]
            items.sort(key=lambda item: _get_field(item[1], field_path),
                       reverse=(direction == firestore.Query.DESCENDING))
        if self._limit is not None:
            items = items[:self._limit]
        for path, data in items:
            yield FakeDocumentSnapshot(FakeDocumentReference(self._db, path), data)

    def get(self, transaction=None):
        return list(self.stream())


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path=path)

    @property
    def id(self):
        return self._path.rsplit('/', 1)[-1]

    def document(self, document_id=None):
        return FakeDocumentReference(self._db, f"{self._path}/{document_id or uuid.uuid4().hex[:20]}")

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return self._db._now(), ref


class _FakeWriteBatch:
    def __init__(self, db):
        self._db = db
        self._writes = []

    def set(self, reference, data, merge=False):
        self._writes.append(('set', reference.path, data, merge))

    def update(self, reference, data):
        self._writes.append(('update', reference.path, data, False))

    def delete(self, reference):
        self._writes.append(('delete', reference.path, None, False))


class FakeWriteBatch(_FakeWriteBatch):
    def commit(self):
        if len(self._writes) > MAX_BATCH_WRITES:
            raise InvalidArgument(f"maximum {MAX_BATCH_WRITES} writes allowed per request")
        self._db.batch_commits += 1
        self._db._commit(self._writes)
        self._writes = []


class FakeTransaction(_FakeWriteBatch):
    def commit(self):
        self._db._commit(self._writes)
        self._writes = []


class FakeFirestore:
    """google.cloud.firestore.Client 중 서비스 코드가 쓰는 부분만 흉내 내는 메모리 저장소."""
    def __init__(self):
        self._docs = {}
        self._lock = threading.RLock()
        self._clock = itertools.count(1)
        self.deleted_paths = []
        self.batch_commits = 0
        self.commit_failures = []   # 커밋 시 차례로 발생시킬 예외 목록 (None이면 통과)

    # --- client API ---
    def collection(self, collection_id):
        return FakeCollectionReference(self, collection_id)

    def collection_group(self, collection_id):
        return FakeQuery(self, collection_id=collection_id)

    def document(self, path):
        return FakeDocumentReference(self, path)

    def batch(self):
        return FakeWriteBatch(self)

    def transaction(self, **kwargs):
        return FakeTransaction(self)

    # --- 테스트 헬퍼 ---
    def seed(self, path, data):
        with self._lock:
            self._docs[path] = self._transform(data, None)

    def data(self, path):
        with self._lock:
            return copy.deepcopy(self._docs.get(path))

    def paths(self, prefix=''):
        with self._lock:
            return sorted(p for p in self._docs if p.startswith(prefix))

    def children(self, collection_path):
        with self._lock:
            return sorted(p for p in self._docs if _parent_path(p) == collection_path)

    # --- 내부 구현 ---
    def _now(self):
        return datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=next(self._clock))

    def _snapshot(self, path):
        with self._lock:
            return FakeDocumentSnapshot(FakeDocumentReference(self, path), self._docs.get(path))

    def _transform(self, value, current):
        if value is firestore.SERVER_TIMESTAMP:
            return self._now()
        if isinstance(value, firestore.Increment):
            base = current if isinstance(current, (int, float)) and not isinstance(current, bool) else 0
            return base + value.value
        if isinstance(value, firestore.ArrayUnion):
            result = list(current or [])
            result.extend(v for v in value.values if v not in result)
            return result
        if isinstance(value, firestore.ArrayRemove):
            return [v for v in (current or []) if v not in value.values]
        if isinstance(value, dict):
            current = current if isinstance(current, dict) else {}
            return {k: self._transform(v, current.get(k)) for k, v in value.items()}
        if isinstance(value, list):
            return [self._transform(v, None) for v in value]
        return copy.deepcopy(value)

    def _merge(self, target, data):
        for key, value in data.items():
            if value is firestore.DELETE_FIELD:
                target.pop(key, None)
            elif isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge(target[key], value)
            else:
                target[key] = self._transform(value, target.get(key))

    def _apply_update(self, doc, data):
        for field_path, value in data.items():
            parts = field_path.split('.')
            target = doc
            for part in parts[:-1]:
                if not isinstance(target.get(part), dict):
                    target[part] = {}
                target = target[part]
            if value is firestore.DELETE_FIELD:
                target.pop(parts[-1], None)
            else:
                target[parts[-1]] = self._transform(value, target.get(parts[-1]))

    def _commit(self, writes):
        with self._lock:
            if self.commit_failures:
                failure = self.commit_failures.pop(0)
                if failure is not None:
                    raise failure
            docs = copy.deepcopy(self._docs)
            deleted = []
            for op, path, data, merge in writes:
                if op == 'set':
                    if merge and path in docs:
                        self._merge(docs[path], data)
                    else:
                        docs[path] = self._transform(data, None)
                elif op == 'update':
                    if path not in docs:
                        raise NotFound(f"No document to update: {path}")
                    self._apply_update(docs[path], data)
                elif op == 'delete':
                    if docs.pop(path, None) is not None:
                        deleted.append(path)
            self._docs = docs
            self.deleted_paths.extend(deleted)


def fake_transactional(to_wrap):
    """firestore.transactional 대체: 전역 락으로 직렬화하고 함수가 끝나면 커밋합니다."""
    @functools.wraps(to_wrap)
    def wrapper(transaction, *args, **kwargs):
        with transaction._db._lock:
            result = to_wrap(transaction, *args, **kwargs)
            transaction.commit()
        return result
    return wrapper

# =====================================================================================
# Storage / Auth / 푸시 게이트웨이 테스트 더블
# =====================================================================================

class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name

    def delete(self):
        if self.bucket.fail_on_delete:
            raise RuntimeError("storage unavailable")
        self.bucket.files.discard(self.name)


class FakeBucket:
    def __init__(self, name='test-bucket'):
        self.name = name
        self.files = set()
        self.fail_on_delete = False

    def blob(self, name):
        return FakeBlob(self, name)

    def list_blobs(self, prefix=None):
        return [FakeBlob(self, name) for name in sorted(self.files) if name.startswith(prefix or '')]


class FakeAuth:
    def __init__(self):
        self.users = set()
        self.id_tokens = {}
        self.delete_failures = []

    def delete_user(self, uid, app=None):
        if self.delete_failures:
            raise self.delete_failures.pop(0)
        if uid not in self.users:
            raise firebase_auth.UserNotFoundError(f"No user record found for the given identifier ({uid}).")
        self.users.discard(uid)

    def verify_id_token(self, id_token, app=None, check_revoked=False, clock_skew_seconds=0):
        uid = self.id_tokens.get(id_token)
        if uid is None:
            raise firebase_auth.InvalidIdTokenError("Could not verify token signature.")
        if check_revoked and uid not in self.users:
            raise firebase_auth.UserNotFoundError(f"No user record found for the given identifier ({uid}).")
        return {'uid': uid}


class FakePushResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakePushGateway:
    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.payload = {'data': {'status': 'ok', 'id': 'ticket-1'}}
        self.error = None
        self._lock = threading.Lock()

    @property
    def messages(self):
        return [request['json'] for request in self.requests]

    def post(self, url, json=None, headers=None, timeout=None, **kwargs):
        with self._lock:
            self.requests.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if self.error is not None:
            raise self.error
        return FakePushResponse(self.status_code, self.payload)

# =====================================================================================
# 픽스처
# =====================================================================================

@pytest.fixture(autouse=True)
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firestore, 'client', lambda *args, **kwargs: db)
    monkeypatch.setattr(firestore, 'transactional', fake_transactional)
    return db


@pytest.fixture(autouse=True)
def fake_bucket(monkeypatch):
    bucket = FakeBucket()
    monkeypatch.setattr(storage, 'bucket', lambda *args, **kwargs: bucket)
    return bucket


@pytest.fixture(autouse=True)
def fake_auth(monkeypatch):
    backend = FakeAuth()
    monkeypatch.setattr(firebase_auth, 'delete_user', backend.delete_user)
    monkeypatch.setattr(firebase_auth, 'verify_id_token', backend.verify_id_token)
    return backend


@pytest.fixture(autouse=True)
def push_gateway(monkeypatch):
    gateway = FakePushGateway()
    monkeypatch.setattr(requests, 'post', gateway.post)
    return gateway


@pytest.fixture
def make_user(fake_db, fake_auth):
    """회원가입 시 클라이언트가 만드는 사용자 문서와 같은 형태로 사용자를 만듭니다."""
    def _make_user(uid, followers=0, following=0, balance=0, reward_claimed=False,
                   notifications=True, push_token=None, display_name=None):
        data = {
            'uid': uid,
            'email': f"{uid}@example.com",
            'username': uid,
            'displayName': display_name or uid.capitalize(),
            'bio': '',
            'avatar': '',
            'followersCount': followers,
            'followingCount': following,
            'postsCount': 0,
            'wallet': {'balance': balance},
            'rewardClaimed': reward_claimed,
            'settings': {'twoFactorEnabled': False, 'notifications': notifications, 'privacy': 'public'},
        }
        if push_token:
            data['pushToken'] = push_token
        fake_db.seed(f"users/{uid}", data)
        fake_auth.users.add(uid)
        return data
    return _make_user


@pytest.fixture
def app(fake_db, fake_bucket, fake_auth, push_gateway):
    from social_backend import create_app
    app = create_app('testing')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """user_id로 발급한 Access 토큰의 Authorization 헤더를 만듭니다."""
    from flask_jwt_extended import create_access_token

    def _auth_headers(user_id):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {'Authorization': f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def trigger_headers(app):
    return {'X-Trigger-Token': app.config['TRIGGER_SHARED_SECRET']}
