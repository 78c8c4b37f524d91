"""
API views for chat.

This module provides REST API endpoints for Hushgram. Every view is a thin
wrapper: it validates input with a serializer, calls the service layer, and
maps a failed ServiceResult to an HTTP error response.

URL Structure:
    /api/v1/chat/users/                          POST (open)
    /api/v1/chat/users/current/                  GET (open)
    /api/v1/chat/users/online/                   GET
    /api/v1/chat/presence/                       POST
    /api/v1/chat/logout/                         POST
    /api/v1/chat/messages/                       POST
    /api/v1/chat/messages/private/{user_id}/     GET
    /api/v1/chat/messages/seen/                  POST
    /api/v1/chat/groups/                         GET
    /api/v1/chat/groups/{group_id}/messages/     GET
    /api/v1/chat/groups/{group_id}/join/         POST
    /api/v1/chat/groups/{group_id}/leave/        POST
    /api/v1/chat/active-chat/                    PUT, DELETE
    /api/v1/chat/typing/                         GET, POST

Design Decisions:
    - Authentication is the X-Session-ID header (chat.authentication)
    - Error payloads are {"error": ..., "error_code": ...}
    - Message history uses cursor pagination (oldest first)
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.models import Group, GroupMembership
from chat.pagination import MessageCursorPagination
from chat.serializers import (
    ActiveChatClearSerializer,
    ActiveChatSerializer,
    ChatUserSerializer,
    CurrentUserSerializer,
    GroupSerializer,
    HeartbeatSerializer,
    MarkSeenResponseSerializer,
    MarkSeenSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    TypingUpdateSerializer,
    UserCreateSerializer,
)
from chat.services import (
    ActiveChatService,
    GroupService,
    MessageService,
    PresenceService,
    TypingService,
    UserCleanupService,
    UserDirectoryService,
)

CONFLICT_CODES = {"USERNAME_TAKEN", "ALREADY_MEMBER"}
FORBIDDEN_CODES = {"NOT_GROUP_MEMBER", "NOT_CHAT_PARTICIPANT"}


def error_response(result) -> Response:
    """Build the error Response for a failed ServiceResult."""
    code = result.error_code or ""
    if code in CONFLICT_CODES:
        http_status = status.HTTP_409_CONFLICT
    elif code.endswith("_NOT_FOUND"):
        http_status = status.HTTP_404_NOT_FOUND
    elif code in FORBIDDEN_CODES:
        http_status = status.HTTP_403_FORBIDDEN
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response(result.to_response(), status=http_status)


def paginated_messages(view: APIView, request, queryset) -> Response:
    """Paginate a message queryset and render it with usernames resolved."""
    paginator = MessageCursorPagination()
    page = paginator.paginate_queryset(queryset, request, view=view)
    serializer = MessageSerializer(
        page,
        many=True,
        context={
            "request": request,
            "usernames": MessageService.resolve_usernames(page),
        },
    )
    return paginator.get_paginated_response(serializer.data)


# =============================================================================
# Users and Presence
# =============================================================================


class UserCreateView(APIView):
    """
    Register a username for a session, or resume the session's user.

    POST /api/v1/chat/users/
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_or_resume_user",
        summary="Create or resume user",
        description=(
            "Bind a username to a session. If the session already has a user, "
            "that user is resumed (same id) and renamed. Otherwise the username "
            "must not be held by a user currently flagged online."
        ),
        request=UserCreateSerializer,
        responses={
            201: OpenApiResponse(response=CurrentUserSerializer),
            400: OpenApiResponse(description="Invalid username or session id"),
            409: OpenApiResponse(description="Username held by an online user"),
        },
        tags=["Chat - Users"],
    )
    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UserDirectoryService.create_or_resume(
            username=serializer.validated_data["username"],
            session_id=serializer.validated_data["session_id"],
        )
        if not result.success:
            return error_response(result)

        return Response(
            CurrentUserSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class CurrentUserView(APIView):
    """
    Look up the user bound to a session.

    GET /api/v1/chat/users/current/?session_id=...
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_current_user",
        summary="Get current user",
        description="Return the user bound to session_id, or null. No side effects.",
        parameters=[
            OpenApiParameter(
                name="session_id",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
            ),
        ],
        responses={200: OpenApiResponse(response=CurrentUserSerializer)},
        tags=["Chat - Users"],
    )
    def get(self, request):
        user = UserDirectoryService.get_current_user(
            request.query_params.get("session_id", "")
        )
        if user is None:
            return Response(None)
        return Response(CurrentUserSerializer(user).data)


class OnlineUsersView(APIView):
    """
    GET /api/v1/chat/users/online/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_online_users",
        summary="List online users",
        description=(
            "Users flagged online whose last heartbeat falls within the "
            "presence window."
        ),
        responses={200: ChatUserSerializer(many=True)},
        tags=["Chat - Presence"],
    )
    def get(self, request):
        users = PresenceService.online_users()
        return Response(ChatUserSerializer(users, many=True).data)


class PresenceView(APIView):
    """
    Heartbeat for the current user.

    POST /api/v1/chat/presence/

    Payload:
        is_online: bool
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="set_presence",
        summary="Send heartbeat",
        description="Set the online flag and refresh last_seen.",
        request=HeartbeatSerializer,
        responses={
            200: OpenApiResponse(response=ChatUserSerializer),
            404: OpenApiResponse(description="User no longer exists"),
            409: OpenApiResponse(description="Username now held by another online user"),
        },
        tags=["Chat - Presence"],
    )
    def post(self, request):
        serializer = HeartbeatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PresenceService.heartbeat(
            user_id=request.user.id,
            is_online=serializer.validated_data["is_online"],
        )
        if not result.success:
            return error_response(result)

        return Response(ChatUserSerializer(result.data).data)


class LogoutView(APIView):
    """
    POST /api/v1/chat/logout/

    Flags the user offline and schedules deletion of the user and their data.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="logout",
        summary="Log out",
        request=None,
        responses={202: OpenApiResponse(description="Cleanup scheduled")},
        tags=["Chat - Users"],
    )
    def post(self, request):
        UserCleanupService.logout(request.user)
        return Response(status=status.HTTP_202_ACCEPTED)


# =============================================================================
# Messages
# =============================================================================


class MessageCreateView(APIView):
    """
    POST /api/v1/chat/messages/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        description="Send a private message (recipient_id) or a group message (group_id).",
        request=MessageCreateSerializer,
        responses={
            201: OpenApiResponse(response=MessageSerializer),
            400: OpenApiResponse(description="Invalid target or content"),
            403: OpenApiResponse(description="Not a member of the group"),
            404: OpenApiResponse(description="Recipient or group not found"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_message(
            sender=request.user,
            content=serializer.validated_data["content"],
            recipient_id=serializer.validated_data.get("recipient_id"),
            group_id=serializer.validated_data.get("group_id"),
        )
        if not result.success:
            return error_response(result)

        message = result.data
        output = MessageSerializer(
            message,
            context={"usernames": MessageService.resolve_usernames([message])},
        )
        return Response(output.data, status=status.HTTP_201_CREATED)


class PrivateMessagesView(APIView):
    """
    GET /api/v1/chat/messages/private/{user_id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_private_messages",
        summary="Private message history",
        description="Messages exchanged with user_id, oldest first.",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def get(self, request, user_id):
        messages = MessageService.get_private_messages(request.user.id, user_id)
        return paginated_messages(self, request, messages)


class GroupMessagesView(APIView):
    """
    GET /api/v1/chat/groups/{group_id}/messages/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_group_messages",
        summary="Group message history",
        description="Messages in the group, oldest first. Members only.",
        responses={
            200: MessageSerializer(many=True),
            403: OpenApiResponse(description="Not a member of the group"),
            404: OpenApiResponse(description="Group not found"),
        },
        tags=["Chat - Messages"],
    )
    def get(self, request, group_id):
        group = get_object_or_404(Group, pk=group_id)
        if not GroupMembership.objects.filter(user=request.user, group=group).exists():
            return Response(
                {
                    "error": "You are not a member of this group",
                    "error_code": "NOT_GROUP_MEMBER",
                },
                status=status.HTTP_403_FORBIDDEN,
            )

        messages = MessageService.get_group_messages(group.id)
        return paginated_messages(self, request, messages)


class MarkSeenView(APIView):
    """
    POST /api/v1/chat/messages/seen/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="mark_messages_seen",
        summary="Mark chat seen",
        request=MarkSeenSerializer,
        responses={
            200: MarkSeenResponseSerializer,
            400: OpenApiResponse(description="Invalid chat id"),
            403: OpenApiResponse(description="Not part of the chat"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request):
        serializer = MarkSeenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.mark_messages_seen(
            user=request.user,
            chat_id=serializer.validated_data["chat_id"],
        )
        if not result.success:
            return error_response(result)

        return Response({"updated": result.data})


# =============================================================================
# Groups
# =============================================================================


class GroupListView(APIView):
    """
    GET /api/v1/chat/groups/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_groups",
        summary="List groups",
        responses={200: GroupSerializer(many=True)},
        tags=["Chat - Groups"],
    )
    def get(self, request):
        return Response(GroupSerializer(GroupService.list_groups(), many=True).data)


class GroupJoinView(APIView):
    """
    POST /api/v1/chat/groups/{group_id}/join/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="join_group",
        summary="Join group",
        request=None,
        responses={
            201: GroupSerializer,
            404: OpenApiResponse(description="Group not found"),
            409: OpenApiResponse(description="Already a member"),
        },
        tags=["Chat - Groups"],
    )
    def post(self, request, group_id):
        result = GroupService.join_group(request.user, group_id)
        if not result.success:
            return error_response(result)

        group = Group.objects.get(pk=group_id)
        return Response(GroupSerializer(group).data, status=status.HTTP_201_CREATED)


class GroupLeaveView(APIView):
    """
    POST /api/v1/chat/groups/{group_id}/leave/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="leave_group",
        summary="Leave group",
        request=None,
        responses={
            204: OpenApiResponse(description="Left the group"),
            403: OpenApiResponse(description="Not a member"),
        },
        tags=["Chat - Groups"],
    )
    def post(self, request, group_id):
        result = GroupService.leave_group(request.user, group_id)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Ephemeral State
# =============================================================================


class ActiveChatView(APIView):
    """
    PUT /api/v1/chat/active-chat/     set the open chat
    DELETE /api/v1/chat/active-chat/  clear it
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="set_active_chat",
        summary="Set active chat",
        request=ActiveChatSerializer,
        responses={
            200: ActiveChatSerializer,
            400: OpenApiResponse(description="Invalid chat id"),
        },
        tags=["Chat - State"],
    )
    def put(self, request):
        serializer = ActiveChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ActiveChatService.set_active_chat(
            user=request.user,
            chat_id=serializer.validated_data["chat_id"],
            device_id=serializer.validated_data["device_id"],
        )
        if not result.success:
            return error_response(result)

        return Response(ActiveChatSerializer(result.data).data)

    @extend_schema(
        operation_id="clear_active_chat",
        summary="Clear active chat",
        request=ActiveChatClearSerializer,
        responses={204: OpenApiResponse(description="Cleared")},
        tags=["Chat - State"],
    )
    def delete(self, request):
        serializer = ActiveChatClearSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ActiveChatService.clear_active_chat(
            user=request.user,
            device_id=serializer.validated_data["device_id"],
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class TypingView(APIView):
    """
    POST /api/v1/chat/typing/              update own indicator
    GET /api/v1/chat/typing/?chat_id=...   who else is typing
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_typing",
        summary="Update typing indicator",
        request=TypingUpdateSerializer,
        responses={
            204: OpenApiResponse(description="Updated"),
            400: OpenApiResponse(description="Invalid chat id"),
        },
        tags=["Chat - State"],
    )
    def post(self, request):
        serializer = TypingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TypingService.update_typing_indicator(
            user=request.user,
            chat_id=serializer.validated_data["chat_id"],
            is_typing=serializer.validated_data["is_typing"],
        )
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="list_typing_users",
        summary="Users typing in a chat",
        parameters=[
            OpenApiParameter(
                name="chat_id",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
            ),
        ],
        responses={200: ChatUserSerializer(many=True)},
        tags=["Chat - State"],
    )
    def get(self, request):
        users = TypingService.get_typing_users(
            chat_id=request.query_params.get("chat_id", ""),
            exclude_user_id=request.user.id,
        )
        return Response(ChatUserSerializer(users, many=True).data)
