"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.companies.models import Company
from backend.addresses.models import Address
from backend.drivers.models import Driver
from backend.orders.models import Order, OrderDispatch
from backend.charges.models import ChargeGroup, ChargeLine, OrderSale, OrderPurchase
from decimal import Decimal
from django.utils import timezone
import random
import string
import uuid

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_digits(length=10):
        return ''.join(random.choices(string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False,
                    access_level='broker_admin', company=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            access_level=access_level,
            company=company,
        )
        return user

    @staticmethod
    def create_company(name=None, type='shipper', business_number=None, status='active'):
        """Create a test company"""
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        if not business_number:
            digits = TestDataFactory.random_digits(10)
            business_number = f'{digits[:3]}-{digits[3:5]}-{digits[5:]}'
        return Company.objects.create(
            name=name,
            business_number=business_number,
            ceo_name='Test CEO',
            type=type,
            status=status,
            contact_tel='02-1234-5678',
        )

    @staticmethod
    def create_address(name=None, type='both', company=None, lat=37.5665, lng=126.9780):
        """Create a test address with coordinates in its metadata"""
        if not name:
            name = f'Address_{TestDataFactory.random_string(6)}'
        metadata = {}
        if lat is not None and lng is not None:
            metadata = {'lat': lat, 'lng': lng}
        return Address.objects.create(
            name=name,
            type=type,
            road_address=f'{name} Road 1',
            jibun_address=f'{name} 100-1',
            metadata=metadata,
            company=company,
        )

    @staticmethod
    def create_driver(name=None, vehicle_number=None, company=None, phone_number='010-1234-5678'):
        """Create a test driver"""
        if not name:
            name = f'Driver_{TestDataFactory.random_string(6)}'
        if not vehicle_number:
            vehicle_number = f'{TestDataFactory.random_digits(2)}GA{TestDataFactory.random_digits(4)}'
        return Driver.objects.create(
            name=name,
            phone_number=phone_number,
            vehicle_number=vehicle_number,
            vehicle_type='cargo',
            vehicle_weight='5t',
            company=company,
            company_type='affiliated' if company else 'individual',
        )

    @staticmethod
    def create_order(company=None, user=None, pickup_date=None, delivery_date=None, flow_status='requested',
                     pickup_address=None, delivery_address=None):
        """Create a test order"""
        if not company:
            company = TestDataFactory.create_company()
        today = timezone.localdate()
        return Order.objects.create(
            company=company,
            flow_status=flow_status,
            cargo_name=f'Cargo_{TestDataFactory.random_string(6)}',
            requested_vehicle_type='cargo',
            requested_vehicle_weight='5t',
            pickup_address=pickup_address,
            delivery_address=delivery_address,
            pickup_date=pickup_date or today,
            delivery_date=delivery_date or pickup_date or today,
            created_by=user,
            updated_by=user,
        )

    @staticmethod
    def create_dispatch(order, driver=None, broker_company=None, user=None):
        """Create a test dispatch for an order"""
        if not driver:
            driver = TestDataFactory.create_driver()
        if not broker_company:
            broker_company = TestDataFactory.create_company(type='broker')
        return OrderDispatch.objects.create(
            order=order,
            broker_company=broker_company,
            broker_manager=user,
            driver=driver,
            vehicle_number=driver.vehicle_number,
            vehicle_type=driver.vehicle_type,
            vehicle_weight=driver.vehicle_weight,
            created_by=user,
        )

    @staticmethod
    def create_charge_group(order, dispatch=None, reason='base_freight', stage='estimate', is_locked=False):
        """Create a test charge group"""
        return ChargeGroup.objects.create(
            order=order,
            dispatch=dispatch,
            reason=reason,
            stage=stage,
            is_locked=is_locked,
        )

    @staticmethod
    def create_charge_line(group, side='sales', amount=None, tax_rate=Decimal('10.00')):
        """Create a test charge line; tax is computed on save"""
        return ChargeLine.objects.create(
            group=group,
            side=side,
            amount=amount if amount is not None else Decimal('100000.00'),
            tax_rate=tax_rate,
        )

    @staticmethod
    def _document_number(prefix, model):
        number = f"{prefix}-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        while model.objects.filter(invoice_number=number).exists():
            number = f"{prefix}-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        return number

    @staticmethod
    def create_order_sale(order, company=None, subtotal=None, tax=None, status='draft', user=None):
        """Create a test sales settlement row"""
        subtotal = subtotal if subtotal is not None else Decimal('100000.00')
        return OrderSale.objects.create(
            order=order,
            company=company or order.company,
            invoice_number=TestDataFactory._document_number('SAL', OrderSale),
            status=status,
            subtotal_amount=subtotal,
            tax_amount=tax if tax is not None else (subtotal / 10).quantize(Decimal('0.01')),
            created_by=user,
        )

    @staticmethod
    def create_order_purchase(order, company=None, driver=None, subtotal=None, tax=None, status='draft', user=None):
        """Create a test purchase settlement row; needs a company or driver"""
        if not company and not driver:
            driver = TestDataFactory.create_driver()
        subtotal = subtotal if subtotal is not None else Decimal('80000.00')
        return OrderPurchase.objects.create(
            order=order,
            company=company,
            driver=driver,
            invoice_number=TestDataFactory._document_number('PUR', OrderPurchase),
            status=status,
            subtotal_amount=subtotal,
            tax_amount=tax if tax is not None else (subtotal / 10).quantize(Decimal('0.01')),
            created_by=user,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
