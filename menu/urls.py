from django.urls import path
from . import views

urlpatterns = [
    path('menus', views.MenuListView.as_view(), name='menu_list'),
    path('menus/<int:menu_id>', views.MenuDetailView.as_view(), name='menu_detail'),
]
