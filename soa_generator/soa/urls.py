from django.urls import path
from . import views

app_name = 'soa'

urlpatterns = [
    path('', views.dashboard, name='dashboard'),
    path('upload/', views.upload_transactions, name='upload'),
    path('customer/', views.select_customer, name='select_customer'),
    path('payments/add/', views.add_payment, name='add_payment'),
    path('payments/<str:trx_id>/delete/', views.delete_payment, name='delete_payment'),
    path('config/', views.save_config, name='save_config'),
    path('logo/reset/', views.reset_logo, name='reset_logo'),
    path('clear/', views.clear_data, name='clear_data'),
    path('generate/', views.generate_statement, name='generate'),
    path('history/<int:pk>/download/', views.download_statement, name='download'),
]
