"""Django admin configuration for files app."""


from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from filebox.apps.files.infrastructure.metadata import format_file_size
from filebox.apps.files.models import File, Folder


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    """Admin interface for File model."""

    list_display = [
        'original_name',
        'user',
        'folder_id',
        'size_display',
        'file_type',
        'created_at',
    ]

    list_filter = [
        'file_type',
        'created_at',
        'user',
    ]

    search_fields = [
        'original_name',
        'storage_path',
    ]

    readonly_fields = [
        'name',
        'storage_path',
        'file_size',
        'file_type',
        'created_at',
    ]

    fieldsets = (
        ('File Information', {
            'fields': ('original_name', 'user', 'folder'),
        }),
        ('Storage', {
            'fields': (
                'name',
                'storage_path',
                'file_size',
                'file_type',
            ),
        }),
        ('Timestamps', {
            'fields': ('created_at',),
        }),
    )

    def size_display(self, obj: File) -> str:
        """Display file size in human-readable format.

        Args:
            obj: File instance.

        Returns:
            Formatted size string (e.g., '1.5 MB', '234 KB').
        """
        return format_file_size(obj.file_size)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user')


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    """Admin interface for Folder model."""

    list_display = [
        'name',
        'user',
        'parent_folder_id',
        'file_count',
        'created_at',
    ]

    list_filter = [
        'user',
        'created_at',
    ]

    search_fields = [
        'name',
    ]

    readonly_fields = ['created_at', 'updated_at']

    def file_count(self, obj: Folder) -> int:
        """Count of file records in this folder.

        Args:
            obj: Folder instance.

        Returns:
            Number of files referencing the folder.
        """
        return obj.files.count()
    file_count.short_description = 'Files'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user')
