from django.db import models
from django.utils import timezone

DEFAULT_PROFILE_NAME = 'Розничный'


class ClientProfile(models.Model):
    """Pricing tier a client belongs to (retail, wholesale, legal entity, ...)"""
    name = models.CharField(max_length=255, unique=True)
    code = models.CharField(max_length=50, unique=True)
    comment = models.TextField(blank=True, null=True)
    base_markup = models.CharField(max_length=50)
    price_markup = models.CharField(max_length=50, blank=True, null=True)
    order_discount = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'client_profiles'
        ordering = ['name']


class Client(models.Model):
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_INACTIVE = 'INACTIVE'
    STATUS_BLOCKED = 'BLOCKED'
    STATUS_PENDING = 'PENDING'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_BLOCKED, 'Blocked'),
        (STATUS_PENDING, 'Pending'),
    ]

    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(blank=True, null=True)
    first_name = models.CharField(max_length=150, blank=True, null=True)
    last_name = models.CharField(max_length=150, blank=True, null=True)
    profile_type = models.CharField(max_length=100, default=DEFAULT_PROFILE_NAME)
    profile = models.ForeignKey(ClientProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='clients')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    is_verified = models.BooleanField(default=False)
    registration_date = models.DateTimeField(default=timezone.now)
    last_login_date = models.DateTimeField(blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def full_name(self):
        if self.first_name and self.last_name:
            return f"{self.last_name} {self.first_name}"
        return 'Не указано'

    @property
    def display_name(self):
        """Name for audit entries; falls back to the phone number"""
        if self.first_name and self.last_name:
            return self.full_name
        return self.phone

    def __str__(self):
        return f"{self.display_name}"

    class Meta:
        db_table = 'clients'
        ordering = ['-registration_date', '-id']


class Discount(models.Model):
    TYPE_DISCOUNT = 'Скидка'
    TYPE_PROMO_CODE = 'Промокод'
    TYPE_CHOICES = [
        (TYPE_DISCOUNT, 'Discount'),
        (TYPE_PROMO_CODE, 'Promo code'),
    ]

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    code = models.CharField(max_length=100, unique=True, blank=True, null=True)
    min_order_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True)
    fixed_discount = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    profiles = models.ManyToManyField(ClientProfile, blank=True, related_name='discounts')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'discounts'
        ordering = ['-created_at', '-id']


class LegalEntity(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='legal_entities')
    name = models.CharField(max_length=255)
    short_name = models.CharField(max_length=255, blank=True, null=True)
    full_name = models.CharField(max_length=500, blank=True, null=True)
    form = models.CharField(max_length=50, blank=True, null=True, help_text="Legal form: ООО, ИП, АО, ...")
    legal_address = models.TextField(blank=True, null=True)
    tax_system = models.CharField(max_length=100, blank=True, null=True)
    responsible_name = models.CharField(max_length=255, blank=True, null=True)
    responsible_position = models.CharField(max_length=255, blank=True, null=True)
    responsible_phone = models.CharField(max_length=20, blank=True, null=True)
    accountant = models.CharField(max_length=255, blank=True, null=True)
    signatory = models.CharField(max_length=255, blank=True, null=True)
    inn = models.CharField(max_length=12, blank=True, default='')
    kpp = models.CharField(max_length=9, blank=True, null=True)
    ogrn = models.CharField(max_length=15, blank=True, null=True)
    vat_percent = models.DecimalField(max_digits=5, decimal_places=2, default=20)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.short_name or self.name

    class Meta:
        db_table = 'legal_entities'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'legal entities'


class Requisite(models.Model):
    """Bank account of a client, optionally tied to one of its legal entities"""
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='requisites')
    legal_entity = models.ForeignKey(LegalEntity, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='requisites')
    name = models.CharField(max_length=255, default='Основной счет')
    bank_name = models.CharField(max_length=255, blank=True, null=True)
    bik = models.CharField(max_length=9, blank=True, null=True)
    account_number = models.CharField(max_length=20)
    correspondent_account = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'requisites'
        ordering = ['-created_at', '-id']


class Contract(models.Model):
    TYPE_SERVICE = 'SERVICE'

    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='contracts')
    number = models.CharField(max_length=100)
    date = models.DateField()
    type = models.CharField(max_length=50, default=TYPE_SERVICE)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'contracts'
        ordering = ['-date', '-id']


class ClientContact(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='contacts')
    name = models.CharField(max_length=255, default='Новый контакт')
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'client_contacts'
        ordering = ['-created_at', '-id']


class Vehicle(models.Model):
    """Car in the client's garage"""
    CODE_VIN = 'VIN'
    CODE_FRAME = 'FRAME'
    CODE_TYPE_CHOICES = [
        (CODE_VIN, 'VIN'),
        (CODE_FRAME, 'Frame'),
    ]

    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='vehicles')
    name = models.CharField(max_length=255, blank=True, null=True)
    vin_or_frame = models.CharField(max_length=50)
    code_type = models.CharField(max_length=10, choices=CODE_TYPE_CHOICES, default=CODE_VIN)
    make = models.CharField(max_length=100, blank=True, null=True)
    model = models.CharField(max_length=100, blank=True, null=True)
    modification = models.CharField(max_length=255, blank=True, null=True)
    year = models.PositiveIntegerField(blank=True, null=True)
    license_plate = models.CharField(max_length=20, blank=True, null=True)
    mileage = models.PositiveIntegerField(blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vehicles'
        ordering = ['-created_at', '-id']


class DeliveryAddress(models.Model):
    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name='delivery_addresses')
    name = models.CharField(max_length=255, blank=True, null=True)
    address = models.TextField()
    delivery_type = models.CharField(max_length=100, blank=True, null=True)
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'delivery_addresses'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'delivery addresses'
