from django.urls import path
from . import views

urlpatterns = [
    path('login', views.LoginView.as_view(), name='login'),
    path('logout', views.LogoutView.as_view(), name='logout'),
    path('logout-all', views.LogoutAllView.as_view(), name='logout_all'),
    path('me', views.MeView.as_view(), name='me'),
    path('users', views.UserListView.as_view(), name='user_list'),
    path('users/<int:user_id>', views.UserDetailView.as_view(), name='user_detail'),
]
