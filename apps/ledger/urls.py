from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'ledger'

router = DefaultRouter()
router.register(r'transactions', views.TransactionViewSet, basename='transaction')

urlpatterns = [
    # Transaction ViewSet routes
    # GET    /api/transactions/                 - List (filters, sorting, pagination)
    # POST   /api/transactions/                 - Create
    # GET    /api/transactions/{id}/            - Detail
    # PUT    /api/transactions/{id}/            - Update
    # PATCH  /api/transactions/{id}/            - Partial update
    # DELETE /api/transactions/{id}/            - Delete

    # Custom actions
    # POST   /api/transactions/{id}/validate/   - Mark reviewed / correct category
    # POST   /api/transactions/bulk-create/
    # POST   /api/transactions/bulk-update/
    # POST   /api/transactions/bulk-delete/

    # Reference data
    path('origins/', views.origin_list, name='origin-list'),
    path('banks/', views.bank_list, name='bank-list'),
    path('categories/', views.category_list, name='category-list'),
    path('categories/hierarchy/', views.category_tree, name='category-hierarchy'),

    path('', include(router.urls)),
]
