"""
Section type registry

Every section type maps to a label, a default content payload used when a
section is added without content, and a serializer that validates and
normalises the JSON content before it is stored.
"""
import copy

from rest_framework import serializers


# Content serializers
class HeroContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    subtitle = serializers.ListField(
        child=serializers.CharField(error_messages={'blank': 'Подзаголовок не может быть пустым'}),
        min_length=1,
        error_messages={'min_length': 'Подзаголовок обязателен'},
    )
    imageUrl = serializers.CharField(error_messages={'blank': 'URL изображения обязателен'})


class TitledTextSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    description = serializers.CharField(error_messages={'blank': 'Описание обязательно'})


class BenefitsContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    items = TitledTextSerializer(many=True, allow_empty=False)


class ServicesContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    items = serializers.ListField(
        child=serializers.CharField(error_messages={'blank': 'Сервис не может быть пустым'}),
        min_length=1,
        error_messages={'min_length': 'Добавьте хотя бы один сервис'},
    )


class ProcessContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    steps = serializers.ListField(
        child=serializers.CharField(error_messages={'blank': 'Шаг не может быть пустым'}),
        min_length=1,
        error_messages={'min_length': 'Добавьте хотя бы один шаг'},
    )


class MessengerLinksSerializer(serializers.Serializer):
    telegram = serializers.CharField(required=False, allow_blank=True)
    whatsapp = serializers.CharField(required=False, allow_blank=True)


class SupportContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    description = serializers.ListField(
        child=serializers.CharField(),
        min_length=1,
        error_messages={'min_length': 'Описание обязательно'},
    )
    contacts = MessengerLinksSerializer(required=False)


class ContactsContentSerializer(serializers.Serializer):
    phone = serializers.CharField(error_messages={'blank': 'Телефон обязателен'})
    address = serializers.CharField(error_messages={'blank': 'Адрес обязателен'})
    workingHours = serializers.CharField(error_messages={'blank': 'Часы работы обязательны'})
    inn = serializers.CharField(error_messages={'blank': 'ИНН обязателен'})
    ogrn = serializers.CharField(error_messages={'blank': 'ОГРН обязателен'})
    kpp = serializers.CharField(error_messages={'blank': 'КПП обязателен'})


class MapContentSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    zoom = serializers.FloatField(min_value=1, max_value=20)


class PaymentAudienceSerializer(serializers.Serializer):
    title = serializers.CharField()
    imageUrl = serializers.CharField()
    methods = serializers.ListField(child=serializers.CharField(), min_length=1)


class ImportantNotesSerializer(serializers.Serializer):
    title = serializers.CharField()
    points = serializers.ListField(child=serializers.CharField(), min_length=1)


class PaymentContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    subtitle = serializers.CharField(error_messages={'blank': 'Подзаголовок обязателен'})
    individuals = PaymentAudienceSerializer()
    businesses = PaymentAudienceSerializer()
    important = ImportantNotesSerializer()


class DeliveryZoneSerializer(serializers.Serializer):
    title = serializers.CharField()
    details = serializers.ListField(child=serializers.CharField(), min_length=1)


class DeliveryCompanySerializer(serializers.Serializer):
    name = serializers.CharField(error_messages={'blank': 'Название компании обязательно'})
    imageUrl = serializers.CharField(error_messages={'blank': 'URL изображения обязателен'})


class DeliveryContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    subtitle = serializers.CharField(error_messages={'blank': 'Подзаголовок обязателен'})
    moscow = DeliveryZoneSerializer()
    regions = DeliveryZoneSerializer()
    companies = DeliveryCompanySerializer(many=True, allow_empty=False)


class WelcomeContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    description = serializers.CharField(error_messages={'blank': 'Описание обязательно'})
    imageUrl = serializers.CharField(required=False, allow_blank=True)


class OfferingSerializer(TitledTextSerializer):
    imageUrl = serializers.CharField(required=False, allow_blank=True)


class OfferingsContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    items = OfferingSerializer(many=True, allow_empty=False)


class AboutCompanyContentSerializer(serializers.Serializer):
    title = serializers.CharField(error_messages={'blank': 'Заголовок обязателен'})
    features = TitledTextSerializer(many=True, allow_empty=False)


# Registry
SECTION_TYPES = {
    'hero': {
        'label': 'Заголовок',
        'serializer': HeroContentSerializer,
        'default': {
            'title': 'ОПТОВИКАМ',
            'subtitle': [
                'Напрямую с 200+ оптовых складов',
                'Доставка по всей России',
                'Вычет НДС 20%',
                'Закрывающие документы',
                'Персональный менеджер',
            ],
            'imageUrl': 'https://example.com/wholesale.jpg',
        },
    },
    'benefits': {
        'label': 'Преимущества',
        'serializer': BenefitsContentSerializer,
        'default': {
            'title': 'Почему оптовые покупатели выбирают PROTEK',
            'items': [
                {
                    'title': 'Широкий ассортимент',
                    'description': 'Все запчасти можно заказать в одном месте, с Российских и зарубежных складов',
                },
                {
                    'title': 'Бесплатный подбор 24/7',
                    'description': 'Наши эксперты круглосуточно подберут нужные запчасти по VIN',
                },
                {
                    'title': 'Минимальные цены и сроки',
                    'description': 'Сравнивайте предложения сотен поставщиков и выбирайте лучшие',
                },
            ],
        },
    },
    'services': {
        'label': 'Сервисы',
        'serializer': ServicesContentSerializer,
        'default': {
            'title': 'Сервисы для удобной работы с нами',
            'items': [
                'Онлайн-проценка по API',
                'Прайс листы нашего наличия',
                'Онлайн заказ',
            ],
        },
    },
    'process': {
        'label': 'Процесс',
        'serializer': ProcessContentSerializer,
        'default': {
            'title': 'Как покупать по оптовой цене',
            'steps': [
                'Зарегистрируйтесь как юридическое лицо',
                'Подберите запчасти в каталоге или воспользуйтесь помощью наших экспертов',
                'Добавьте адрес доставки и оформите заказ',
                'Скачайте счет на оплату или оплатите заказ картой',
                'Получите заказ и закрывающие документы',
            ],
        },
    },
    'support': {
        'label': 'Поддержка',
        'serializer': SupportContentSerializer,
        'default': {
            'title': 'Поддержка оптовых покупателей',
            'description': [
                'Для наших постоянных оптовых клиентов мы предлагаем отсрочку платежа, что позволит вам '
                'удобно планировать свои финансовые расходы.',
                'Также мы принимаем пред.заказы на наш склад, чтобы вы могли быть уверены в наличии '
                'необходимых запчастей для своих клиентов.',
                'Постоянным оптовым клиентам мы предоставляем индивидуальные скидки.',
            ],
            'contacts': {
                'telegram': 'https://t.me/protekwholesale',
                'whatsapp': 'https://wa.me/79001234567',
            },
        },
    },
    'contacts': {
        'label': 'Контакты',
        'serializer': ContactsContentSerializer,
        'default': {
            'phone': '+7 (495) 260-20-60',
            'address': 'Московская обл., г. Дмитров, ул. Чекистская 6, комната 4',
            'workingHours': 'ПН-ПТ 9:00 – 18:00, Сб 10:00 – 16:00, ВС – Выходной',
            'inn': '5007117840',
            'ogrn': '1225000146282',
            'kpp': '500701001',
        },
    },
    'map': {
        'label': 'Карта',
        'serializer': MapContentSerializer,
        'default': {
            'latitude': 56.344689,
            'longitude': 37.52002,
            'zoom': 15,
        },
    },
    'payment': {
        'label': 'Оплата',
        'serializer': PaymentContentSerializer,
        'default': {
            'title': 'Оплата',
            'subtitle': 'Выберите удобный способ оплаты',
            'individuals': {
                'title': 'Для физических лиц',
                'imageUrl': 'https://example.com/individuals-payment.jpg',
                'methods': ['Наличными', 'Банковской картой', 'Онлайн переводом'],
            },
            'businesses': {
                'title': 'Для юридических лиц',
                'imageUrl': 'https://example.com/businesses-payment.jpg',
                'methods': ['Безналичный расчет', 'Банковской картой', 'Отсрочка платежа'],
            },
            'important': {
                'title': 'Важно знать',
                'points': [
                    'Оплата должна быть произведена в течение 3 дней',
                    'При оплате картой комиссия отсутствует',
                    'Возможна отсрочка платежа для постоянных клиентов',
                ],
            },
        },
    },
    'delivery': {
        'label': 'Доставка',
        'serializer': DeliveryContentSerializer,
        'default': {
            'title': 'Доставка',
            'subtitle': 'Быстрая и надежная доставка по всей России',
            'moscow': {
                'title': 'По Москве и МО',
                'details': [
                    'Доставка в день заказа при оформлении до 12:00',
                    'Стоимость доставки от 300 рублей',
                    'Бесплатная доставка при заказе от 5000 рублей',
                ],
            },
            'regions': {
                'title': 'По регионам России',
                'details': [
                    'Доставка транспортными компаниями',
                    'Сроки доставки 1-7 дней в зависимости от региона',
                    'Возможность доставки до терминала или до двери',
                ],
            },
            'companies': [
                {'name': 'СДЭК', 'imageUrl': 'https://example.com/cdek-logo.jpg'},
                {'name': 'Boxberry', 'imageUrl': 'https://example.com/boxberry-logo.jpg'},
                {'name': 'ПЭК', 'imageUrl': 'https://example.com/pek-logo.jpg'},
            ],
        },
    },
    'welcome': {
        'label': 'Приветствие',
        'serializer': WelcomeContentSerializer,
        'default': {
            'title': 'Добро пожаловать!',
            'description': 'Мы рады видеть вас на нашем сайте!',
            'imageUrl': 'https://example.com/welcome.jpg',
        },
    },
    'offerings': {
        'label': 'Предложения',
        'serializer': OfferingsContentSerializer,
        'default': {
            'title': 'Наши предложения',
            'items': [
                {
                    'title': f'Продукт {n}',
                    'description': f'Описание продукта {n}',
                    'imageUrl': f'https://example.com/product{n}.jpg',
                }
                for n in (1, 2, 3)
            ],
        },
    },
    'about_company': {
        'label': 'О компании',
        'serializer': AboutCompanyContentSerializer,
        'default': {
            'title': 'О компании',
            'features': [
                {
                    'title': 'Надежность',
                    'description': 'Мы гарантируем надежность и качество наших продуктов',
                },
                {
                    'title': 'Инновации',
                    'description': 'Мы постоянно совершенствуем наши технологии и продукты',
                },
                {
                    'title': 'Клиентоориентированность',
                    'description': 'Мы всегда учитываем потребности и пожелания наших клиентов',
                },
            ],
        },
    },
}

# Which section types make up each kind of page, keyed by the page's usual slug
PAGE_KINDS = {
    'wholesale': {
        'title': 'Оптовым клиентам',
        'types': ['hero', 'benefits', 'services', 'process', 'support'],
    },
    'payment-delivery': {
        'title': 'Оплата и доставка',
        'types': ['payment', 'delivery'],
    },
    'about': {
        'title': 'О компании',
        'types': ['welcome', 'offerings', 'about_company'],
    },
    'contacts': {
        'title': 'Контакты',
        'types': ['contacts', 'map'],
    },
}


def is_known_type(section_type):
    return section_type in SECTION_TYPES


def section_label(section_type):
    entry = SECTION_TYPES.get(section_type)
    return entry['label'] if entry else section_type


def default_content(section_type):
    """Fresh copy of the default payload; callers may mutate it"""
    if section_type not in SECTION_TYPES:
        raise serializers.ValidationError({'type': f'Unknown section type: {section_type}'})
    return copy.deepcopy(SECTION_TYPES[section_type]['default'])


def validate_section_content(section_type, content):
    """
    Validate `content` against the serializer registered for `section_type`.

    Returns the normalised payload (unknown keys dropped, numbers coerced) and
    raises ValidationError with the field errors under `content` otherwise.
    """
    if section_type not in SECTION_TYPES:
        raise serializers.ValidationError({'type': f'Unknown section type: {section_type}'})
    if not isinstance(content, dict):
        raise serializers.ValidationError({'content': 'Content must be a JSON object'})

    serializer = SECTION_TYPES[section_type]['serializer'](data=content)
    if not serializer.is_valid():
        raise serializers.ValidationError({'content': serializer.errors})
    return _plain(serializer.validated_data)


def _plain(value):
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def page_kind(section_types, slug=None):
    """
    Infer the kind of page from the section types it already has.

    A page without sections falls back to its slug when that names a kind.
    Returns None when the kind cannot be told.
    """
    present = set(section_types)
    for kind, kind_info in PAGE_KINDS.items():
        if present.intersection(kind_info['types']):
            return kind
    if slug in PAGE_KINDS:
        return slug
    return None


def available_section_types(page):
    """Section types that can still be added to `page`"""
    present = list(page.sections.values_list('type', flat=True))
    kind = page_kind(present, page.slug)
    candidates = PAGE_KINDS[kind]['types'] if kind else list(SECTION_TYPES)
    return [t for t in candidates if t not in present]


def registry_listing():
    return [
        {'type': section_type, 'label': entry['label'], 'default_content': copy.deepcopy(entry['default'])}
        for section_type, entry in SECTION_TYPES.items()
    ]
