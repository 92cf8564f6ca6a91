from django.core.validators import MinLengthValidator, MinValueValidator, RegexValidator
from django.db import models

from apps.core.models import AuditedModel


class ShipFlag(models.TextChoices):
    SENEGAL = 'SENEGAL', 'Sénégal'
    FRANCE = 'FRANCE', 'France'
    LIBERIA = 'LIBERIA', 'Libéria'
    PANAMA = 'PANAMA', 'Panama'
    MARSHALL_ISLANDS = 'MARSHALL_ISLANDS', 'Îles Marshall'
    SINGAPORE = 'SINGAPORE', 'Singapour'
    BAHAMAS = 'BAHAMAS', 'Bahamas'
    MALTA = 'MALTA', 'Malte'
    CYPRUS = 'CYPRUS', 'Chypre'
    GREECE = 'GREECE', 'Grèce'


class ShipType(models.TextChoices):
    CARGO = 'CARGO', 'Cargo'
    CONTENEUR = 'CONTENEUR', 'Porte-conteneurs'
    PETROLIER = 'PETROLIER', 'Pétrolier'
    VRAQUEUR = 'VRAQUEUR', 'Vraquier'
    PASSAGERS = 'PASSAGERS', 'Navire à passagers'
    RO_RO = 'RO_RO', 'Roulier'
    FRIGORIFIQUE = 'FRIGORIFIQUE', 'Frigorifique'
    CHIMIQUIER = 'CHIMIQUIER', 'Chimiquier'
    GAZIER = 'GAZIER', 'Gazier'
    REMORQUEUR = 'REMORQUEUR', 'Remorqueur'
    PILOTE = 'PILOTE', 'Bateau pilote'


class ShipClassification(models.TextChoices):
    BUREAU_VERITAS = 'BUREAU_VERITAS', 'Bureau Veritas'
    LLOYDS_REGISTER = 'LLOYDS_REGISTER', "Lloyd's Register"
    DNV_GL = 'DNV_GL', 'DNV GL'
    ABS = 'ABS', 'American Bureau of Shipping'
    CLASS_NK = 'CLASS_NK', 'ClassNK'
    RINA = 'RINA', 'RINA'
    CCS = 'CCS', 'China Classification Society'
    RS = 'RS', 'Russian Maritime Register'
    KR = 'KR', 'Korean Register'
    IRS = 'IRS', 'Indian Register of Shipping'


class Ship(AuditedModel):
    """Vessel owned or operated by a shipping company."""

    name = models.CharField(max_length=100)
    imo_number = models.CharField(
        max_length=10,
        unique=True,
        validators=[MinLengthValidator(7)]
    )
    mmsi_number = models.CharField(
        max_length=9,
        unique=True,
        validators=[RegexValidator(r'^\d{9}$', 'MMSI must be exactly 9 digits')]
    )
    call_sign = models.CharField(max_length=20, unique=True)

    flag = models.CharField(max_length=30, choices=ShipFlag.choices)
    ship_type = models.CharField(max_length=30, choices=ShipType.choices)
    classification = models.CharField(
        max_length=30,
        choices=ShipClassification.choices,
        blank=True
    )
    passenger_count = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0)]
    )
    home_port = models.CharField(max_length=100, blank=True)

    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.PROTECT,
        related_name='ships'
    )

    class Meta:
        db_table = 'ships'
        indexes = [
            models.Index(fields=['company', 'active']),
            models.Index(fields=['name']),
            models.Index(fields=['ship_type']),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (IMO {self.imo_number})"
