from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/              - List user's groups
    # POST   /api/groups/              - Create group
    # GET    /api/groups/{id}/         - Get group details (member)
    # PATCH  /api/groups/{id}/         - Update group (admin)
    # DELETE /api/groups/{id}/         - Delete group (admin)

    # Custom group actions
    # GET    /api/groups/{id}/members/              - List members (member)
    # POST   /api/groups/{id}/invite/               - Invite an email (member)
    # POST   /api/groups/{id}/join/                 - Join with an invite sent to you
    # POST   /api/groups/{id}/leave/                - Leave group (member)
    # GET    /api/groups/{id}/verify-membership/    - Member or live invite?
    # POST   /api/groups/{id}/block/                - Block member (admin)
    # POST   /api/groups/{id}/unblock/              - Unblock member (admin)
    # GET    /api/groups/{id}/blocked/              - List blocked members (admin)
    # POST   /api/groups/{id}/update-member-role/   - Update member role (admin)

    # Invite endpoints
    path('invites/accept/', views.accept_invite_view, name='accept-invite'),
    path('invites/pending/', views.pending_invites, name='pending-invites'),

    # Include router URLs
    path('', include(router.urls)),
]
