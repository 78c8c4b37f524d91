"""
URL configuration for chat API.

URL Structure:
    Users and presence:
        /users/                              POST (open)
        /users/current/                      GET (open)
        /users/online/                       GET
        /presence/                           POST
        /logout/                             POST

    Messages:
        /messages/                           POST
        /messages/private/{user_id}/         GET
        /messages/seen/                      POST

    Groups:
        /groups/                             GET
        /groups/{group_id}/messages/         GET
        /groups/{group_id}/join/             POST
        /groups/{group_id}/leave/            POST

    Ephemeral state:
        /active-chat/                        PUT, DELETE
        /typing/                             GET, POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat import views

app_name = "chat"

urlpatterns = [
    # Users and presence
    path("users/", views.UserCreateView.as_view(), name="user-create"),
    path("users/current/", views.CurrentUserView.as_view(), name="user-current"),
    path("users/online/", views.OnlineUsersView.as_view(), name="user-online"),
    path("presence/", views.PresenceView.as_view(), name="presence"),
    path("logout/", views.LogoutView.as_view(), name="logout"),
    # Messages
    path("messages/", views.MessageCreateView.as_view(), name="message-create"),
    path(
        "messages/private/<int:user_id>/",
        views.PrivateMessagesView.as_view(),
        name="message-private",
    ),
    path("messages/seen/", views.MarkSeenView.as_view(), name="message-seen"),
    # Groups
    path("groups/", views.GroupListView.as_view(), name="group-list"),
    path(
        "groups/<int:group_id>/messages/",
        views.GroupMessagesView.as_view(),
        name="group-messages",
    ),
    path("groups/<int:group_id>/join/", views.GroupJoinView.as_view(), name="group-join"),
    path(
        "groups/<int:group_id>/leave/",
        views.GroupLeaveView.as_view(),
        name="group-leave",
    ),
    # Ephemeral state
    path("active-chat/", views.ActiveChatView.as_view(), name="active-chat"),
    path("typing/", views.TypingView.as_view(), name="typing"),
]
