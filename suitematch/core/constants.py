"""Global constants for the suitematch application."""

# Collection names
USERS_COLLECTION = "users"
GROUPS_COLLECTION = "groups"
REQUESTS_COLLECTION = "requests"

# Request statuses
STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"

# Reasons recorded on a request the engine declines at accept time
REASON_GROUP_GONE = "Group no longer exists"
REASON_USER_GROUPED = "User already in a group"
REASON_GROUP_FULL = "Group is full"
REASON_USER_GONE = "Requesting user no longer exists"

# Dashboard
GROUP_RECOMMENDATION_LIMIT = 6
UNGROUPED_USERS_LIMIT = 50

# Profile validation
GRADUATION_YEAR_DIGITS = 4
INSTAGRAM_HANDLE_MAX_LENGTH = 30

# Schools accepting sign-ups, mapped to the student email domain
SCHOOL_EMAIL_DOMAINS = {
    "Pomona College": "mymail.pomona.edu",
    "Scripps College": "scrippscollege.edu",
    "Claremont McKenna College": "students.claremontmckenna.edu",
    "Harvey Mudd College": "g.hmc.edu",
    "Pitzer College": "students.pitzer.edu",
}
