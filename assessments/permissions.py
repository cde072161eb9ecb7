from rest_framework import permissions


class HasRole(permissions.BasePermission):
    """
    Gate a view on the closed set of user roles.
    Subclasses list the roles they admit.
    """
    allowed_roles = ()

    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        return getattr(request.user, 'role', '') in self.allowed_roles


class IsAdmin(HasRole):
    allowed_roles = ('admin',)


class IsStaff(HasRole):
    """Allows access to Staff and Admins. Strictly blocks Students."""
    allowed_roles = ('staff', 'admin')


class IsStudent(HasRole):
    allowed_roles = ('student',)
