"""End-to-end import runs over synthetic export archives."""

import os
from datetime import datetime
from unittest import mock

import pytest

from config_loader import ConfigLoader
from converters import MarkdownConverter
from fetchers import WrongExportFormatError
from orchestrator import ImportContext, MigrationOrchestrator, run_import

from conftest import CHILD_ID, DB_ID, HOME_ID, OTHER_ID, ZIP_DATE, page_html, zip_bytes


def make_config(archives, output_dir, **settings):
    config = ConfigLoader.with_defaults({
        'importer': dict(settings, archives=list(archives), output_directory=str(output_dir)),
    })
    ConfigLoader.validate(config)
    return config


def output_files(root):
    found = []
    for folder, _, files in os.walk(root):
        for name in files:
            found.append(os.path.relpath(os.path.join(folder, name), root).replace(os.sep, '/'))
    return sorted(found)


def home_page():
    return page_html(
        f'<p>Go to <a href="Home%20{HOME_ID}/Child%20{CHILD_ID}.html">Child</a></p>'
        f'<figure class="image"><img src="Home%20{HOME_ID}/image.png"/></figure>',
        title='Home',
    )


@pytest.fixture
def out(tmp_path):
    return tmp_path / 'out'


@pytest.fixture
def context():
    return ImportContext(show_progress=False)


class TestImportRun:

    def test_full_export(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            'index.html': '<html></html>',
            f"Home {HOME_ID}.html": home_page(),
            f"Home {HOME_ID}/Child {CHILD_ID}.html": page_html('<p>child text</p>', title='Child'),
            f"Home {HOME_ID}/image.png": b'\x89PNG',
            f"Home {HOME_ID}/Tasks {DB_ID}.csv": 'Name,Done\n',
            f"Home {HOME_ID}/Tasks {DB_ID}_all.csv": 'Name,Done\n',
        })

        summary = MigrationOrchestrator(make_config([archive], out), context=context).run()

        assert output_files(out) == ['Home/Child.md', 'Home/Home.md', 'Home/image.png']
        home = (out / 'Home' / 'Home.md').read_text(encoding='utf-8')
        assert '[Child](Child.md)' in home
        assert '![](image.png)' in home
        assert (out / 'Home' / 'Child.md').read_text(encoding='utf-8') == 'child text\n'
        assert (out / 'Home' / 'image.png').read_bytes() == b'\x89PNG'

        assert summary.notes_succeeded == 2
        assert summary.attachments_succeeded == 1
        assert summary.failed == []
        assert summary.skipped == []
        assert summary.total_entries == 3
        assert summary.output_directory == str(out)

    def test_note_mtime_from_archive(self, make_zip, out, context):
        archive = make_zip('export.zip', {f"Home {HOME_ID}.html": page_html('<p>x</p>')})

        run_import(make_config([archive], out), context=context)

        expected = datetime(*ZIP_DATE).timestamp()
        assert os.path.getmtime(out / 'Home.md') == pytest.approx(expected)

    def test_markdown_export_writes_nothing(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            f"Home {HOME_ID}.html": page_html('<p>x</p>'),
            f"Home {HOME_ID}/Child {CHILD_ID}.md": '# Child\n',
        })

        with pytest.raises(WrongExportFormatError):
            MigrationOrchestrator(make_config([archive], out), context=context).run()

        assert not out.exists()
        assert context.is_cancelled()

    def test_multipart_export(self, make_zip, out, context):
        first = make_zip('Export-Part-1.zip', {
            f"Home {HOME_ID}.html": page_html(f'<p><a href="Other%20{OTHER_ID}.html">Other</a></p>'),
            f"Home {HOME_ID}/Child {CHILD_ID}.html": page_html('<p>child</p>'),
        })
        second = make_zip('Export-Part-2.zip', {
            f"Other {OTHER_ID}.html": page_html('<p>other</p>'),
        })

        summary = run_import(make_config([first, second], out), context=context)

        assert output_files(out) == ['Home/Child.md', 'Home/Home.md', 'Other.md']
        assert '[Other](../Other.md)' in (out / 'Home' / 'Home.md').read_text(encoding='utf-8')
        assert summary.notes_succeeded == 3

    def test_directory_of_archives(self, tmp_path, out, context):
        parts = tmp_path / 'parts'
        parts.mkdir()
        (parts / 'b.zip').write_bytes(zip_bytes({f"Other {OTHER_ID}.html": page_html('<p>b</p>')}))
        (parts / 'a.zip').write_bytes(zip_bytes({f"Home {HOME_ID}.html": page_html('<p>a</p>')}))

        run_import(make_config([str(parts)], out), context=context)

        assert output_files(out) == ['Home.md', 'Other.md']

    def test_nested_archives(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            'Export-Part-1.zip': zip_bytes({f"Home {HOME_ID}.html": page_html('<p>home</p>')}),
            'Export-Part-2.zip': zip_bytes({
                f"Home {HOME_ID}/Child {CHILD_ID}.html": page_html('<p>child</p>'),
            }),
        })

        summary = run_import(make_config([archive], out), context=context)

        assert output_files(out) == ['Home/Child.md', 'Home/Home.md']
        assert summary.notes_succeeded == 2

    def test_page_without_id_is_skipped(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            'Loose.html': page_html('<p>loose</p>'),
            f"Home {HOME_ID}.html": page_html('<p>home</p>'),
        })

        summary = run_import(make_config([archive], out), context=context)

        assert output_files(out) == ['Home.md']
        assert len(summary.skipped) == 1
        assert summary.skipped[0].source_path == f"{archive}/Loose.html"
        assert summary.total_entries == 2

    def test_duplicate_titles(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            f"Notes {HOME_ID}.html": page_html('<p>first</p>'),
            f"Notes {OTHER_ID}.html": page_html('<p>second</p>'),
        })

        run_import(make_config([archive], out), context=context)

        assert output_files(out) == ['Notes 2.md', 'Notes.md']
        assert (out / 'Notes.md').read_text(encoding='utf-8') == 'first\n'
        assert (out / 'Notes 2.md').read_text(encoding='utf-8') == 'second\n'

    def test_same_page_in_two_archives(self, make_zip, out, context):
        files = {f"Home {HOME_ID}.html": page_html('<p>home</p>')}
        first = make_zip('a.zip', files)
        second = make_zip('b.zip', files)

        summary = run_import(make_config([first, second], out), context=context)

        assert output_files(out) == ['Home.md']
        assert summary.notes_succeeded == 1
        assert [result.source_path for result in summary.skipped] == [f"{second}/Home {HOME_ID}.html"]

    def test_flat_layout_with_shared_attachment_folder(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            f"Home {HOME_ID}.html": home_page(),
            f"Home {HOME_ID}/Child {CHILD_ID}.html": page_html('<p>child</p>'),
            f"Home {HOME_ID}/image.png": b'\x89PNG',
        })
        config = make_config([archive], out, hierarchy_mode='flat', default_attachment_folder='attachments')

        run_import(config, context=context)

        assert output_files(out) == ['Child.md', 'Home.md', 'attachments/image.png']
        home = (out / 'Home.md').read_text(encoding='utf-8')
        assert '[Child](Child.md)' in home
        assert '![](attachments/image.png)' in home

    def test_conversion_failure_does_not_stop_import(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            f"Home {HOME_ID}.html": home_page(),
            f"Home {HOME_ID}/image.png": b'\x89PNG',
        })

        with mock.patch.object(MarkdownConverter, 'convert_page', side_effect=RuntimeError('boom')):
            summary = run_import(make_config([archive], out), context=context)

        assert output_files(out) == ['Home/image.png']
        assert len(summary.failed) == 1
        assert summary.failed[0].reason == 'boom'
        assert summary.attachments_succeeded == 1

    def test_second_run_leaves_files_unchanged(self, make_zip, out):
        archive = make_zip('export.zip', {f"Home {HOME_ID}.html": page_html('<p>home</p>')})
        config = make_config([archive], out)

        run_import(config, context=ImportContext(show_progress=False))
        summary = run_import(config, context=ImportContext(show_progress=False))

        assert summary.notes_succeeded == 1
        assert summary.notes_unchanged == 1

    def test_unreadable_archive_reported_once(self, tmp_path, make_zip, out, context):
        broken = tmp_path / 'broken.zip'
        broken.write_bytes(b'not a zip file')
        good = make_zip('good.zip', {f"Home {HOME_ID}.html": page_html('<p>home</p>')})

        summary = MigrationOrchestrator(make_config([str(broken), good], out), context=context).run()

        assert output_files(out) == ['Home.md']
        assert [result.source_path for result in summary.failed] == [str(broken)]

    def test_unreadable_nested_archive_reported_once(self, make_zip, out, context):
        archive = make_zip('outer.zip', {
            f"Home {HOME_ID}.html": page_html('<p>home</p>'),
            'Export-Part-2.zip': b'garbage',
        })

        summary = MigrationOrchestrator(make_config([archive], out), context=context).run()

        assert output_files(out) == ['Home.md']
        assert [result.source_path for result in summary.failed] == [f"{archive}/Export-Part-2.zip"]
        assert summary.failed[0].kind == 'archive'

    def test_progress_reported_while_indexing(self, make_zip, out, context):
        archive = make_zip('export.zip', {
            f"Home {HOME_ID}.html": home_page(),
            f"Home {HOME_ID}/image.png": b'\x89PNG',
        })

        with mock.patch.object(context, 'report_progress') as report_progress:
            run_import(make_config([archive], out), context=context)

        assert report_progress.call_args_list == [
            mock.call(0, 1), mock.call(0, 2),
            mock.call(1, 2), mock.call(2, 2),
        ]

    def test_cancelled_before_start(self, make_zip, out, context):
        archive = make_zip('export.zip', {f"Home {HOME_ID}.html": page_html('<p>home</p>')})
        context.cancel()

        summary = run_import(make_config([archive], out), context=context)

        assert summary.cancelled
        assert not out.exists()
