import os
import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import BackendRejected, TransportFailure
from ..models.models import Address, BillRecord, Order, Product, User

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


class BackendClient:
    """REST client for the store backend.

    One client is created per bot user: the underlying ``requests.Session``
    keeps the backend auth cookies for that user.

    Every response is an envelope ``{success, message?, ...}``. A
    ``success: false`` body raises :class:`BackendRejected` whatever the HTTP
    status; network failures and undecodable bodies raise
    :class:`TransportFailure`.
    The bill list is the one endpoint that may answer with a bare JSON list.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv('BACKEND_URL') or '').rstrip('/')
        if not self.base_url:
            raise ValueError("BACKEND_URL environment variable is not set")
        self.timeout = timeout or float(os.getenv('BACKEND_TIMEOUT', DEFAULT_TIMEOUT))
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None, envelope: bool = True) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise TransportFailure(e)
        except ValueError as e:
            logger.error(f"Backend returned a non-JSON body for {method} {path} (HTTP {response.status_code})")
            raise TransportFailure(e)

        if isinstance(data, list) and not envelope:
            return data
        if not isinstance(data, dict):
            raise TransportFailure(ValueError(f"unexpected body for {method} {path}"))
        if not data.get('success'):
            message = data.get('message') or f"Request failed (HTTP {response.status_code})"
            logger.info(f"Backend rejected {method} {path}: {message}")
            raise BackendRejected(message)
        return data

    # Users

    def login(self, email: str, password: str) -> User:
        data = self._request('POST', '/api/user/login', {'email': email, 'password': password})
        return User.from_api(data['user'])

    def register(self, name: str, email: str, password: str) -> User:
        data = self._request('POST', '/api/user/register', {'name': name, 'email': email, 'password': password})
        return User.from_api(data['user'])

    def logout(self) -> str:
        return self._request('GET', '/api/user/logout').get('message', '')

    def get_users(self) -> List[User]:
        data = self._request('GET', '/api/user/all')
        return [User.from_api(user) for user in data.get('users', [])]

    def delete_user(self, user_id: str) -> str:
        return self._request('DELETE', f'/api/user/delete/{user_id}').get('message', '')

    # Seller

    def seller_login(self, email: str, password: str) -> str:
        return self._request('POST', '/api/seller/login', {'email': email, 'password': password}).get('message', '')

    def seller_logout(self) -> str:
        return self._request('GET', '/api/seller/logout').get('message', '')

    # Products

    def get_products(self) -> List[Product]:
        data = self._request('GET', '/api/product/list')
        return [Product.from_api(product) for product in data.get('products', [])]

    def set_stock(self, product_id: str, in_stock: bool) -> str:
        data = self._request('POST', '/api/product/stock', {'id': product_id, 'inStock': in_stock})
        return data.get('message', '')

    # Addresses

    def get_addresses(self) -> List[Address]:
        data = self._request('GET', '/api/address/get')
        return [Address.from_api(address) for address in data.get('addresses', [])]

    # Orders

    def place_cod_order(self, payload: Dict[str, Any]) -> str:
        return self._request('POST', '/api/order/cod', payload).get('message', '')

    def place_online_order(self, payload: Dict[str, Any]) -> str:
        """Start an online payment and return the payment page URL."""
        data = self._request('POST', '/api/order/stripe', payload)
        if not data.get('url'):
            raise BackendRejected("Payment provider did not return a checkout URL")
        return data['url']

    def get_user_orders(self) -> List[Order]:
        data = self._request('GET', '/api/order/user')
        return [Order.from_api(order) for order in data.get('orders', [])]

    def get_seller_orders(self) -> List[Order]:
        data = self._request('GET', '/api/order/seller')
        return [Order.from_api(order) for order in data.get('orders', [])]

    def update_order_status(self, order_id: str, status: str) -> str:
        data = self._request('PUT', f'/api/order/updateStatus/{order_id}', {'status': status})
        return data.get('message', '')

    def delete_order(self, order_id: str) -> str:
        return self._request('DELETE', f'/api/order/{order_id}').get('message', '')

    # Bills

    def get_bills(self) -> List[BillRecord]:
        # Answered with a bare list, or a {success, bills} envelope
        data = self._request('GET', '/api/bills/all', envelope=False)
        bills = data if isinstance(data, list) else data.get('bills', [])
        return [BillRecord.from_api(bill) for bill in bills]
