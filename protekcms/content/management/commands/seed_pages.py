from django.core.management.base import BaseCommand
from django.db import transaction

from protekcms.content.models import Page, PageSection
from protekcms.content.sections import PAGE_KINDS, default_content


class Command(BaseCommand):
    help = 'Create the standard site pages (wholesale, payment-delivery, about, contacts) with default sections'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be created without writing anything',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        created_pages = 0
        created_sections = 0

        with transaction.atomic():
            for slug, kind_info in PAGE_KINDS.items():
                page = Page.objects.filter(slug=slug).first()
                if page is None:
                    created_pages += 1
                    self.stdout.write(f'  + page {slug}')
                    if not dry_run:
                        page = Page.objects.create(title=kind_info['title'], slug=slug, is_active=True)

                existing = set(page.sections.values_list('type', flat=True)) if page else set()
                for order, section_type in enumerate(kind_info['types']):
                    if section_type in existing:
                        continue
                    created_sections += 1
                    self.stdout.write(f'    + section {section_type}')
                    if not dry_run:
                        PageSection.objects.create(
                            page=page,
                            type=section_type,
                            order=order,
                            content=default_content(section_type),
                        )

        prefix = 'Would create' if dry_run else 'Created'
        self.stdout.write(self.style.SUCCESS(
            f'{prefix} {created_pages} pages and {created_sections} sections'
        ))
