from django.urls import path
from . import views

urlpatterns = [
    path('payments', views.PaymentListView.as_view(), name='payment_list'),
    path('payments/<int:payment_id>', views.PaymentDetailView.as_view(), name='payment_detail'),
]
