"""Users app package.

Holds the custom user model used for authentication. A user is either a
student (linked one-to-one with ``apps.students.models.Student``) or an
administrative account (hostel admin, ICT staff). Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
