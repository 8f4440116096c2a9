import pytest
from gql.transport.exceptions import TransportQueryError

from catalog_updater.accounts import account_from_descriptor
from catalog_updater.clients import FatalLineageError
from catalog_updater.enricher import enrich_repository, is_variant, merge_manifests, parse_manifest

from conftest import FakeInstallationContext, descriptor, make_repo, tag_node, write_override

PARENT = {"name": "upstream", "owner": {"login": "origin-org"}, "url": "https://github.com/origin-org/upstream"}


@pytest.fixture
def account():
    return account_from_descriptor(descriptor("acme"), "me", ["acme"])


def test_merge_is_shallow_and_override_wins() -> None:
    merged = merge_manifests({"a": 1, "b": 2}, {"b": 3, "c": 4})
    assert merged == {"a": 1, "b": 3, "c": 4}


def test_merge_replaces_nested_values_whole() -> None:
    merged = merge_manifests({"legal": {"license": "MIT", "repoOwner": "x"}}, {"legal": {"license": "GPL-3.0"}})
    assert merged == {"legal": {"license": "GPL-3.0"}}


def test_merge_without_sources_is_none() -> None:
    assert merge_manifests(None, None) is None
    assert merge_manifests({}, None) == {}


@pytest.mark.parametrize("text", [None, "", "just a string", "- a\n- b\n", "key: [unclosed"])
def test_unusable_manifests_count_as_absent(text) -> None:
    assert parse_manifest(text) is None


def test_is_variant_for_forks_compares_with_own_clone_url() -> None:
    fork = make_repo("tool", fork=True)
    assert is_variant(fork, {"url": fork.clone_url})
    assert not is_variant(fork, {"url": "https://github.com/origin-org/upstream.git"})
    assert not is_variant(fork, {"name": "tool"})


def test_is_variant_for_non_forks_requires_based_on() -> None:
    repo = make_repo("tool")
    assert is_variant(repo, {"isBasedOn": "https://github.com/origin-org/upstream.git"})
    assert not is_variant(repo, {"url": repo.clone_url})


def test_repository_without_tags_or_manifest(account, override_store) -> None:
    repo = make_repo("plain", stargazers=3, forks=1)
    context = FakeInstallationContext(repos=[repo])

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry == {
        "meta": {
            "name": "plain",
            "forkOf": None,
            "isVariant": False,
            "isArchived": False,
            "stargazers": 3,
            "forks": 1,
        },
        "url": repo.clone_url,
        "description": None,
    }


def test_latest_tag_sets_version_and_release_date(account, override_store) -> None:
    repo = make_repo("versioned")
    context = FakeInstallationContext(tags={"versioned": [tag_node("v2.0.1", "2024-03-01T10:00:00Z")]})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["softwareVersion"] == "2.0.1"
    assert entry["releaseDate"] == "2024-03-01T10:00:00Z"


@pytest.mark.parametrize("tag, version", [
    ("v1.0", "1.0"),
    ("1.0", "1.0"),
    ("vv1", "v1"),
    ("release-1", "release-1"),
    ("V1.0", "V1.0"),
])
def test_only_one_leading_v_is_stripped(account, override_store, tag, version) -> None:
    repo = make_repo("versioned")
    context = FakeInstallationContext(tags={"versioned": [tag_node(tag, "2024-03-01T10:00:00Z")]})

    assert enrich_repository(context, account, repo, override_store).software_version == version


def test_annotated_tag_uses_commit_date_of_target(account, override_store) -> None:
    repo = make_repo("annotated")
    node = {"name": "v3.1.0", "target": {"target": {"committedDate": "2023-12-24T08:00:00Z"}}}
    context = FakeInstallationContext(tags={"annotated": [node]})

    entry = enrich_repository(context, account, repo, override_store)

    assert entry.software_version == "3.1.0"
    assert entry.release_date == "2023-12-24T08:00:00Z"


def test_description_license_and_homepage(account, override_store) -> None:
    repo = make_repo("described", description="A tool", license_id="MIT", homepage="https://tool.example.com")
    context = FakeInstallationContext()

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["description"] == {"en": {"shortDescription": "A tool"}}
    assert entry["legal"] == {"license": "MIT"}
    assert entry["landingURL"] == "https://tool.example.com"


def test_manifest_description_replaces_repository_description(account, override_store) -> None:
    repo = make_repo("described", description="A tool")
    manifest = "description:\n  it:\n    shortDescription: Uno strumento\n"
    context = FakeInstallationContext(files={"described": manifest})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["description"] == {"it": {"shortDescription": "Uno strumento"}}


def test_remote_manifest_and_override_are_merged(account, override_store, overrides_root) -> None:
    repo = make_repo("merged")
    context = FakeInstallationContext(files={"merged": "name: Merged\nplatforms: [web]\nsoftwareType: library\n"})
    write_override(overrides_root, "acme", "merged", "override.yml", "softwareType: standalone/web\nlocalisation: {}\n")

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["name"] == "Merged"
    assert entry["platforms"] == ["web"]
    assert entry["softwareType"] == "standalone/web"
    assert entry["localisation"] == {}
    assert list(entry)[:3] == ["meta", "url", "description"]


def test_missing_remote_manifest_is_not_an_error(account, override_store) -> None:
    repo = make_repo("nomanifest")
    context = FakeInstallationContext()

    entry = enrich_repository(context, account, repo, override_store)

    assert ("file", "acme", "nomanifest", "publiccode.yml") in context.calls
    assert entry.extra == {}
    assert entry.meta.is_variant is False


def test_invalid_override_is_ignored(account, override_store, overrides_root) -> None:
    repo = make_repo("broken")
    context = FakeInstallationContext(files={"broken": "name: Broken\n"})
    write_override(overrides_root, "acme", "broken", "override.yml", "name: [unclosed\n")

    entry = enrich_repository(context, account, repo, override_store)

    assert entry.extra == {"name": "Broken"}


def test_override_alone_counts_as_manifest(account, override_store, overrides_root) -> None:
    repo = make_repo("derived")
    write_override(overrides_root, "acme", "derived", "override.yml", "isBasedOn: https://github.com/x/y.git\n")

    entry = enrich_repository(FakeInstallationContext(), account, repo, override_store)

    assert entry.meta.is_variant is True
    assert entry.is_based_on == "https://github.com/x/y.git"


def test_manifest_cannot_replace_meta(account, override_store) -> None:
    repo = make_repo("sneaky")
    context = FakeInstallationContext(files={"sneaky": "meta:\n  isVariant: true\nname: Sneaky\n"})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["meta"]["name"] == "sneaky"
    assert entry["meta"]["isVariant"] is False
    assert entry["name"] == "Sneaky"


def test_archived_repository_is_obsolete_regardless_of_manifest(account, override_store) -> None:
    repo = make_repo("old", archived=True)
    context = FakeInstallationContext(files={"old": "developmentStatus: stable\n"})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["developmentStatus"] == "obsolete"
    assert entry["meta"]["isArchived"] is True


def test_fork_lineage_is_resolved(account, override_store) -> None:
    repo = make_repo("tool", fork=True)
    context = FakeInstallationContext(parents={"tool": PARENT})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["meta"]["forkOf"] == {"owner": "origin-org", "name": "upstream"}
    assert entry["isBasedOn"] == "https://github.com/origin-org/upstream.git"
    assert entry["meta"]["isVariant"] is False


def test_fork_with_manifest_pointing_upstream_is_not_a_variant(account, override_store) -> None:
    repo = make_repo("tool", fork=True)
    context = FakeInstallationContext(
        parents={"tool": PARENT},
        files={"tool": "url: https://github.com/origin-org/upstream.git\n"},
    )

    entry = enrich_repository(context, account, repo, override_store)

    assert entry.meta.is_variant is False
    assert entry.url == "https://github.com/origin-org/upstream.git"


def test_fork_without_parent_aborts(account, override_store) -> None:
    repo = make_repo("orphan", fork=True)
    context = FakeInstallationContext(parents={"orphan": None})

    with pytest.raises(FatalLineageError) as excinfo:
        enrich_repository(context, account, repo, override_store)

    assert excinfo.value.owner == "acme"
    assert excinfo.value.repo_name == "orphan"


def test_failing_parent_lookup_aborts(account, override_store) -> None:
    repo = make_repo("tool", fork=True)
    context = FakeInstallationContext()

    def failing_query(query, variables):
        raise TransportQueryError("Could not resolve to a Repository", errors=[{"type": "NOT_FOUND"}])

    context.execute_query = failing_query

    with pytest.raises(FatalLineageError):
        enrich_repository(context, account, repo, override_store)


def test_yaml_dates_survive_in_entry(account, override_store) -> None:
    repo = make_repo("dated")
    context = FakeInstallationContext(files={"dated": "releaseDate: 2020-01-15\n"})

    entry = enrich_repository(context, account, repo, override_store)

    assert entry.release_date.isoformat() == "2020-01-15"


def test_yaml_date_keys_become_strings() -> None:
    manifest = parse_manifest("changelog:\n  2020-01-01: first\n  2021-06-30:\n    - 2021-06-30: second\n")

    assert manifest == {"changelog": {"2020-01-01": "first", "2021-06-30": [{"2021-06-30": "second"}]}}


def test_manifest_that_cannot_be_rendered_counts_as_absent() -> None:
    assert parse_manifest("logo: !!binary aGVsbG8=\n") is None


def test_explicit_nulls_in_manifest_are_kept(account, override_store) -> None:
    repo = make_repo("nulls", homepage="https://nulls.example.com", license_id="MIT")
    context = FakeInstallationContext(files={"nulls": "landingURL: null\nlegal: null\n"})

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["landingURL"] is None
    assert entry["legal"] is None
    assert list(entry) == ["meta", "url", "description", "landingURL", "legal"]


def test_empty_description_passes_through(account, override_store) -> None:
    repo = make_repo("blank", description="", homepage="")
    context = FakeInstallationContext()

    entry = enrich_repository(context, account, repo, override_store).to_dict()

    assert entry["description"] == ""
    assert "landingURL" not in entry
