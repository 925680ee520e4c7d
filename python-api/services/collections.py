"""
Document store collection IDs shared by the coordinators.
"""

EVENTS = "events"
REGISTRATIONS = "registrations"
TEAMS = "hackathon_teams"
TEAM_MEMBERS = "team_members"
SUBMISSIONS = "submissions"
BLOG = "blog"
