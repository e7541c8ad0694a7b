from django.urls import path
from . import views

urlpatterns = [
    path('orders', views.OrderListView.as_view(), name='order_list'),
    path('orders/<int:order_id>', views.OrderDetailView.as_view(), name='order_detail'),
    path('orders/<int:order_id>/advance', views.OrderAdvanceView.as_view(), name='order_advance'),
    path('order-items', views.OrderItemListView.as_view(), name='order_item_list'),
    path('order-items/<int:item_id>', views.OrderItemDetailView.as_view(), name='order_item_detail'),
]
