from fitcircle.models.user import User
from fitcircle.models.friendship import Friendship, FriendRequest
from fitcircle.models.chat import Group, GroupMember, GroupAdmin, Message, MessageRead
from fitcircle.models.post import Post, PostLike, PostComment, CommentReply

__all__ = [
    "User", "Friendship", "FriendRequest",
    "Group", "GroupMember", "GroupAdmin", "Message", "MessageRead",
    "Post", "PostLike", "PostComment", "CommentReply",
]
