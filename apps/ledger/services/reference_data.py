"""
Default origins, banks and category hierarchy for a new household.

Used by the ``seed_reference_data`` management command and by tests.
"""

from typing import Dict, List, Optional

from django.db import transaction

from ..models import Origin, Bank, Category, TransactionFlow, MajorCategory, UNKNOWN_CATEGORY_NAME
from .exceptions import ReferenceDataError


DEFAULT_ORIGIN = 'Comum'

DEFAULT_ORIGINS = ['Comum', 'Joana', 'Diogo']

DEFAULT_BANKS = [
    'Activo Bank',
    'Millenium BCP',
    'Montepio',
    'Splitwise',
    'Moey',
    'Revolut',
    'Cartão Alimentação',
    'Wizink',
]

_IN = TransactionFlow.INCOME
_OUT = TransactionFlow.EXPENSE

# (flow, major category, category, [sub categories])
DEFAULT_CATEGORIES = [
    (_IN, MajorCategory.INCOME, 'Salario', [
        'Salario Liq.', 'Subs.Alimentação', 'Mensalidade', 'IRS', 'Prémio', 'Subs.Férias',
    ]),
    (_IN, MajorCategory.EXTRA_INCOME, 'Vendas Usados', ['Olx', 'Vinted']),
    (_IN, MajorCategory.EXTRA_INCOME, 'Prendas', ['Monetário']),
    (_IN, MajorCategory.EXTRA_INCOME, 'Outros Rendimentos', ['Outros Rendimentos']),
    (_IN, MajorCategory.EXTRA_INCOME, 'Reembolsos', [
        'Reemb. Seguro Saúde', 'Reemb. Prestação', 'Reemb. IVA',
    ]),
    (_IN, MajorCategory.EXTRA_INCOME, UNKNOWN_CATEGORY_NAME, [UNKNOWN_CATEGORY_NAME]),

    (_OUT, MajorCategory.SAVINGS_INVESTMENTS, 'Poupança', [
        'Fundo de Emergência', 'Poupança Pessoal',
    ]),
    (_OUT, MajorCategory.SAVINGS_INVESTMENTS, 'Investimento', [
        'PPR', 'Criptomoeda', 'Ações / ETF', 'Depósito a Prazo',
    ]),
    (_OUT, MajorCategory.FIXED_COSTS, 'Casa', [
        'Prestação', 'Condominio', 'Água', 'Electricidade', 'Gás', 'Internet', 'Seg.Multiriscos',
    ]),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Casa', ['Casa Manutenção', 'Casa Outros']),
    (_OUT, MajorCategory.FIXED_COSTS, 'Subscrições', ['Telemóvel', 'Spotify', 'Google One', 'Amazon']),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Subscrições', ['Outras Subscrições']),
    (_OUT, MajorCategory.FIXED_COSTS, 'Alimentação', ['Supermercado']),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Alimentação', [
        'Padaria / Pastelaria', 'Take Away', 'Refeições fora de casa',
    ]),
    (_OUT, MajorCategory.FIXED_COSTS, 'Transportes', [
        'Carro Combustivel', 'Carro Via Verde', 'Carro Seguro', 'Carro IUC',
    ]),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Transportes', [
        'Estacionamento', 'Carro Manutenção', 'Transporte Público',
    ]),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Saúde', [
        'Consultas Adulto', 'Exames Adulto', 'Dentista Adulto', 'Medicamentos Adulto',
    ]),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Parentalidade', [
        'Vestuário Criança', 'Consulta Pediatria', 'Outros Criança',
    ]),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Desporto', ['Ginásio', 'Padel', 'Yoga']),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Educação', ['Formação', 'Livros', 'Cultura']),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Comissões', ['Millenium', 'MbWay']),
    (_OUT, MajorCategory.VARIABLE_COSTS, 'Levantamento', ['Levantamento']),
    (_OUT, MajorCategory.GUILT_FREE, 'Lazer', ['Férias', 'Atividades Lúdicas', 'Date Night']),
    (_OUT, MajorCategory.GUILT_FREE, 'Compras Gerais', [
        'Vestuário', 'Acessórios', 'Coisas para casa', 'Compras Gerais Outros',
    ]),
    (_OUT, MajorCategory.GUILT_FREE, 'Prendas', ['Prendas Aniversário', 'Prendas Natal']),
    (_OUT, MajorCategory.VARIABLE_COSTS, UNKNOWN_CATEGORY_NAME, [UNKNOWN_CATEGORY_NAME]),
]


@transaction.atomic
def seed_reference_data():
    """
    Create the default origins, banks and categories.

    Idempotent: existing rows are left untouched.

    Returns:
        dict: Number of rows created per table
    """
    created = {'origins': 0, 'banks': 0, 'categories': 0}

    for name in DEFAULT_ORIGINS:
        _, was_created = Origin.objects.get_or_create(name=name)
        created['origins'] += int(was_created)

    for name in DEFAULT_BANKS:
        _, was_created = Bank.objects.get_or_create(name=name)
        created['banks'] += int(was_created)

    for flow, major, category, sub_categories in DEFAULT_CATEGORIES:
        for sub_category in sub_categories:
            _, was_created = Category.objects.get_or_create(
                flow=flow,
                major_category=major,
                category=category,
                sub_category=sub_category,
            )
            created['categories'] += int(was_created)

    return created


def category_hierarchy(*, flow: Optional[str] = None) -> List[Dict]:
    """
    Group categories by major category.

    Returns:
        list: One entry per (flow, major category) with its categories and
        sub-categories, e.g.
        ``{'flow': 'SAIDA', 'major_category': 'CUSTOS_FIXOS',
        'categories': [{'name': 'Casa', 'sub_categories': [{'id': ..., 'name': 'Água'}]}]}``
    """
    queryset = Category.objects.all()
    if flow:
        queryset = queryset.filter(flow=flow)

    grouped: Dict[tuple, Dict[str, list]] = {}
    for cat in queryset.order_by('flow', 'major_category', 'category', 'sub_category'):
        majors = grouped.setdefault((cat.flow, cat.major_category), {})
        majors.setdefault(cat.category, []).append({
            'id': str(cat.id),
            'name': cat.sub_category,
        })

    return [
        {
            'flow': flow_value,
            'major_category': major,
            'major_category_label': MajorCategory(major).label,
            'categories': [
                {'name': name, 'sub_categories': subs}
                for name, subs in categories.items()
            ],
        }
        for (flow_value, major), categories in grouped.items()
    ]


def get_or_create_origin(name: str) -> Origin:
    """Find an origin by name (case-insensitive) or create it."""
    name = name.strip()
    origin = Origin.objects.filter(name__iexact=name).first()
    if origin:
        return origin
    if not name:
        raise ReferenceDataError('Origin name is required')
    return Origin.objects.create(name=name[:50])


def get_or_create_bank(name: str) -> Bank:
    """Find a bank by name (case-insensitive) or create it."""
    name = name.strip()
    bank = Bank.objects.filter(name__iexact=name).first()
    if bank:
        return bank
    if not name:
        raise ReferenceDataError('Bank name is required')
    return Bank.objects.create(name=name[:100])
