"""
ShipEngine client for EVRi shipping labels, carriers and rate quotes.
"""
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_ITEM_WEIGHT_KG = 0.5
MIN_PACKAGE_WEIGHT_KG = 0.1
PACKAGE_DIMENSIONS = {'length': 30, 'width': 20, 'height': 5, 'unit': 'centimeter'}

DEFAULT_SHIP_FROM = {
    'name': 'MR Shirt Personalisation LTD',
    'company_name': 'MR Shirt Personalisation LTD',
    'address_line1': '10 Barney Close',
    'address_line2': '',
    'city_locality': 'London',
    'state_province': 'London',
    'postal_code': 'SE7 8SS',
    'country_code': 'GB',
    'phone': '+447902870824',
    'address_residential_indicator': 'no',
}

REQUEST_TIMEOUT = 30


class ShipEngineError(Exception):
    """Raised for transport failures and non-2xx answers"""
    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def country_code(country: str) -> str:
    if not country or country.strip().lower() in ('united kingdom', 'uk', 'great britain'):
        return 'GB'
    return country


def order_ship_to(order) -> Dict[str, Any]:
    return {
        'name': order.customer_name,
        'address_line1': order.address,
        'address_line2': order.address_line2 or '',
        'city_locality': order.city,
        'state_province': order.county,
        'postal_code': order.postcode,
        'country_code': country_code(order.country),
        'phone': order.phone or '',
        'address_residential_indicator': 'yes',
    }


def order_package(order) -> Dict[str, Any]:
    """One parcel sized for the whole order, 0.5 kg per item"""
    total_weight = sum(DEFAULT_ITEM_WEIGHT_KG * item.quantity for item in order.items.all())
    return {
        'weight': {'value': max(total_weight, MIN_PACKAGE_WEIGHT_KG), 'unit': 'kilogram'},
        'dimensions': dict(PACKAGE_DIMENSIONS),
    }


class ShipEngineClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.SHIPENGINE_API_KEY
        self.base_url = (base_url or settings.SHIPENGINE_BASE_URL).rstrip('/')
        if not self.api_key:
            raise ShipEngineError('ShipEngine API credentials not configured')

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {'API-Key': self.api_key, 'Content-Type': 'application/json'}
        logger.info(f"ShipEngine request: {method} {endpoint}")
        try:
            response = requests.request(method, url, json=payload, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            logger.error(f"ShipEngine request failed: {method} {endpoint}: {str(e)}")
            raise ShipEngineError(f"ShipEngine request failed: {str(e)}") from e

        if not response.ok:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            logger.error(f"ShipEngine API error {response.status_code} on {endpoint}: {details}")
            raise ShipEngineError(
                f"ShipEngine API error: {response.status_code}",
                status_code=response.status_code,
                details=details,
            )
        return response.json()

    def get_carriers(self):
        return self._request('GET', '/v1/carriers')

    def get_services(self, carrier_id: Optional[str] = None):
        carrier_id = carrier_id or settings.SHIPENGINE_CARRIER_ID
        return self._request('GET', f'/v1/carriers/{carrier_id}/services')

    def get_rates(self, order, carrier_id: Optional[str] = None, service_code: Optional[str] = None):
        shipment = {
            'ship_to': order_ship_to(order),
            'ship_from': DEFAULT_SHIP_FROM,
            'packages': [order_package(order)],
        }
        if service_code:
            shipment['service_code'] = service_code
        return self._request('POST', '/v1/rates', {
            'rate_options': {'carrier_ids': [carrier_id or settings.SHIPENGINE_CARRIER_ID]},
            'shipment': shipment,
        })

    def create_label(self, order) -> Dict[str, Any]:
        """Buy a 4x6 PDF label for the order (test label outside production)"""
        shipment = {
            'carrier_id': settings.SHIPENGINE_CARRIER_ID,
            'service_code': settings.SHIPENGINE_SERVICE_CODE,
            'external_shipment_id': f"{order.reference}-{int(timezone.now().timestamp())}",
            'ship_date': timezone.localdate().isoformat(),
            'ship_to': order_ship_to(order),
            'ship_from': DEFAULT_SHIP_FROM,
            'packages': [order_package(order)],
            'items': [
                {
                    'name': item.name,
                    'quantity': item.quantity,
                    'weight': {'value': DEFAULT_ITEM_WEIGHT_KG, 'unit': 'kilogram'},
                }
                for item in order.items.all()
            ],
        }
        result = self._request('POST', '/v1/labels', {
            'shipment': shipment,
            'test_label': not settings.SHIPENGINE_PRODUCTION,
            'label_download_type': 'url',
            'label_format': 'pdf',
            'label_layout': '4x6',
        })
        logger.info(f"Created label {result.get('label_id')} for {order.reference}: {result.get('tracking_number')}")
        return result
