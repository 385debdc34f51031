# social_backend/services/notification_service.py
import logging
from dataclasses import asdict
from typing import Optional

import requests
from flask import Flask

from social_backend.models.notification import PushMessage

DEFAULT_PUSH_GATEWAY_URL = 'https://exp.host/--/api/v2/push/send'

class PushNotificationService:
    """
    푸시 게이트웨이(Expo)로 알림 한 건을 전송하는 공용 서비스 클래스.
    - 상태를 갖지 않으며 재시도하거나 큐에 쌓지 않습니다. (fire-and-forget)
    - 호출하는 쪽은 전송 결과(True/False)에 의존하지 않아야 합니다.
    """
    def __init__(self, gateway_url: str = DEFAULT_PUSH_GATEWAY_URL, timeout: float = 10, access_token: Optional[str] = None):
        self.gateway_url = gateway_url
        self.timeout = timeout
        self.access_token = access_token

    def init_app(self, app: Flask):
        """Flask 앱 설정에서 게이트웨이 주소와 타임아웃을 읽어옵니다."""
        self.gateway_url = app.config.get('PUSH_GATEWAY_URL') or DEFAULT_PUSH_GATEWAY_URL
        self.timeout = app.config.get('PUSH_REQUEST_TIMEOUT', self.timeout)
        self.access_token = app.config.get('PUSH_ACCESS_TOKEN')
        logging.info("PushNotificationService: 푸시 게이트웨이 설정이 완료되었습니다.")

    def send_push_notification(self, message: PushMessage) -> bool:
        """
        푸시 알림 한 건을 게이트웨이로 POST 합니다.

        :param message: 수신자 토큰(to)과 title, body, data, sound를 담은 PushMessage
        :return: 게이트웨이가 전송 티켓을 정상 발급하면 True, 그 외에는 False
        """
        if not message.to:
            logging.warning("푸시 알림 전송 생략: 수신자 토큰이 없습니다.")
            return False

        headers = {
            'Accept': 'application/json',
            'Accept-Encoding': 'gzip, deflate',
            'Content-Type': 'application/json',
        }
        if self.access_token:
            headers['Authorization'] = f"Bearer {self.access_token}"

        try:
            response = requests.post(
                self.gateway_url,
                json=asdict(message),
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            receipt = response.json()
        except (requests.RequestException, ValueError) as e:
            logging.error(f"푸시 알림 전송 실패 (type: {message.data.get('type')}): {e}", exc_info=True)
            return False

        if not isinstance(receipt, dict):
            logging.error(f"푸시 게이트웨이 응답 형식 오류: {receipt!r}")
            return False

        # Expo는 HTTP 200이어도 요청 단위 errors 또는 티켓 단위 status='error'를 돌려줄 수 있습니다.
        if receipt.get('errors'):
            logging.error(f"푸시 게이트웨이 요청 오류: {receipt['errors']}")
            return False

        ticket = receipt.get('data') or {}
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        if not isinstance(ticket, dict):
            logging.error(f"푸시 티켓 형식 오류: {ticket!r}")
            return False
        if ticket.get('status') == 'error':
            logging.error(f"푸시 티켓 오류: {ticket.get('message')} ({(ticket.get('details') or {}).get('error')})")
            return False

        logging.info(f"푸시 알림 전송 완료 (type: {message.data.get('type')}, ticket: {ticket.get('id')})")
        return True
