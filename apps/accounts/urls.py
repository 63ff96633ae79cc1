from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('logout/', views.logout, name='logout'),

    # User profile
    path('user/', views.get_current_user, name='current-user'),
    path('user/update/', views.update_profile, name='update-profile'),

    # Subscription features
    path('permissions/', views.my_permissions, name='my-permissions'),
    path('features/', views.feature_list, name='feature-list'),

    # Administration
    path('admin/users/', views.admin_user_list, name='admin-user-list'),
    path('admin/users/<uuid:pk>/permissions/', views.admin_update_permissions, name='admin-update-permissions'),
]
