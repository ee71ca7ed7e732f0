"""Tests for the fluent job builder."""

import pytest

from aurora_jobs.jobs.builder import AuroraJob, DEFAULT_PORT_NAMESPACE
from aurora_jobs.jobs.container import DockerContainer, MesosContainer
from aurora_jobs.jobs.spec import JobConfiguration, Resource


def port_names(job):
    return [
        r.named_port
        for r in job.get_task_config().resources
        if r.named_port is not None
    ]


class TestConstruction:
    """Tests for the state of a fresh builder."""

    def test_empty_key(self):
        job = AuroraJob()
        key = job.get_job_key()

        assert key.role == ""
        assert key.environment == ""
        assert key.name == ""

    def test_base_resources_present(self):
        """Test cpu/ram/disk entries exist and are zeroed."""
        job = AuroraJob()
        resources = job.get_task_config().resources

        assert [r.kind for r in resources] == ["cpu", "ram", "disk"]
        assert resources[0].num_cpus == 0.0
        assert resources[1].ram_mb == 0
        assert resources[2].disk_mb == 0

    def test_no_ports(self):
        job = AuroraJob()

        assert port_names(job) == []
        assert job.port_count == 0

    def test_empty_lists(self):
        task = AuroraJob().get_task_config()

        assert task.mesos_fetcher_uris == []
        assert task.metadata == []
        assert task.constraints == []

    def test_default_container_is_mesos(self):
        container = AuroraJob().get_task_config().container

        assert container is not None
        assert container.kind == "mesos"
        assert container.docker is None
        assert container.mesos.image is None
        assert container.mesos.volumes == []

    def test_no_executor(self):
        assert AuroraJob().get_task_config().executor_config is None

    def test_task_shares_job_key(self):
        job = AuroraJob()

        assert job.get_task_config().job is job.get_job_key()

    def test_instances_are_independent(self):
        first = AuroraJob().set_name("a").add_ports(2)
        second = AuroraJob()

        assert second.get_job_key().name == ""
        assert second.port_count == 0
        assert port_names(second) == []


class TestIdentity:
    """Tests for role, environment and name."""

    def test_setters_chain(self):
        job = AuroraJob()

        assert job.set_role("r") is job
        assert job.set_environment("prod") is job
        assert job.set_name("n") is job

    def test_last_write_wins(self):
        job = (
            AuroraJob()
            .set_role("first")
            .set_environment("devel")
            .set_name("one")
            .set_role("second")
            .set_name("two")
        )
        key = job.get_job_key()

        assert key.role == "second"
        assert key.environment == "devel"
        assert key.name == "two"

    def test_role_sets_both_owners(self):
        job = AuroraJob().set_role("www-data")
        config = job.get_job_config()

        assert config.owner.user == "www-data"
        assert config.task_config.owner.user == "www-data"

    def test_owners_stay_in_sync(self):
        job = AuroraJob().set_role("a").set_role("b")
        config = job.get_job_config()

        assert config.owner is config.task_config.owner
        assert config.owner.user == "b"

    def test_task_key_follows_job_key(self):
        job = AuroraJob().set_name("hello")

        assert job.get_task_config().job.name == "hello"


class TestExecutor:
    """Tests for lazily created executor config."""

    def test_name_creates_executor(self):
        job = AuroraJob().set_executor_name("AuroraExecutor")
        executor = job.get_task_config().executor_config

        assert executor.name == "AuroraExecutor"
        assert executor.data == ""

    def test_data_creates_executor(self):
        job = AuroraJob().set_executor_data('{"processes": []}')
        executor = job.get_task_config().executor_config

        assert executor.name == ""
        assert executor.data == '{"processes": []}'

    def test_order_independent(self):
        a = AuroraJob().set_executor_name("exec").set_executor_data("payload")
        b = AuroraJob().set_executor_data("payload").set_executor_name("exec")

        assert a.get_task_config().executor_config == b.get_task_config().executor_config

    def test_executor_reused(self):
        job = AuroraJob().set_executor_name("exec")
        executor = job.get_task_config().executor_config
        job.set_executor_data("payload")

        assert job.get_task_config().executor_config is executor


class TestResources:
    """Tests for cpu/ram/disk and tier."""

    def test_overwrite_not_accumulate(self):
        job = AuroraJob().set_cpu(1.0).set_cpu(0.25).set_ram(64).set_ram(128)
        resources = job.get_task_config().resources

        assert resources[0].num_cpus == 0.25
        assert resources[1].ram_mb == 128
        assert len(resources) == 3

    def test_disk(self):
        job = AuroraJob().set_disk(512)

        assert job.get_task_config().resources[2].disk_mb == 512

    def test_negative_values_pass_through(self):
        job = AuroraJob().set_cpu(-1.0).set_ram(-5).set_disk(0)
        resources = job.get_task_config().resources

        assert resources[0].num_cpus == -1.0
        assert resources[1].ram_mb == -5
        assert resources[2].disk_mb == 0

    def test_base_entries_stay_first_after_ports(self):
        job = AuroraJob().add_ports(2).set_cpu(2.0)
        resources = job.get_task_config().resources

        assert [r.kind for r in resources[:3]] == ["cpu", "ram", "disk"]
        assert resources[0].num_cpus == 2.0

    def test_tier(self):
        job = AuroraJob().set_tier("preemptible")

        assert job.get_task_config().tier == "preemptible"


class TestScheduling:
    """Tests for instances, failures, service and cron settings."""

    def test_instance_count(self):
        job = AuroraJob().set_instance_count(5)

        assert job.get_instance_count() == 5
        assert job.get_job_config().instance_count == 5

    def test_max_failures(self):
        job = AuroraJob().set_max_failures(3)

        assert job.get_task_config().max_task_failures == 3

    def test_is_service(self):
        job = AuroraJob().set_is_service(True)

        assert job.get_task_config().is_service is True

    def test_cron_does_not_clear_service(self):
        job = AuroraJob().set_is_service(True).set_cron_schedule("*/5 * * * *")

        assert job.get_job_config().cron_schedule == "*/5 * * * *"
        assert job.get_task_config().is_service is True

    def test_cron_collision_policy(self):
        job = AuroraJob().set_cron_collision_policy("RUN_OVERLAP")

        assert job.get_job_config().cron_collision_policy == "RUN_OVERLAP"

    def test_default_cron_settings(self):
        config = AuroraJob().get_job_config()

        assert config.cron_schedule is None
        assert config.cron_collision_policy == "KILL_EXISTING"


class TestPorts:
    """Tests for named and anonymous port allocation."""

    def test_anonymous_ports(self):
        job = AuroraJob().add_ports(3)

        assert port_names(job) == [
            "org.apache.aurora.port.0",
            "org.apache.aurora.port.1",
            "org.apache.aurora.port.2",
        ]

    def test_anonymous_ports_continue(self):
        job = AuroraJob().add_ports(3).add_ports(2)

        assert port_names(job)[3:] == [
            "org.apache.aurora.port.3",
            "org.apache.aurora.port.4",
        ]
        assert job.port_count == 5

    def test_named_ports(self):
        job = AuroraJob().add_named_ports("http", "admin")

        assert port_names(job) == ["http", "admin"]
        assert job.port_count == 2

    def test_named_ports_advance_counter(self):
        """Anonymous names continue from the total ports requested."""
        job = AuroraJob().add_named_ports("a", "b").add_ports(1)

        assert port_names(job) == ["a", "b", "org.apache.aurora.port.2"]

    def test_interleaved(self):
        job = AuroraJob().add_ports(1).add_named_ports("http").add_ports(1)

        assert port_names(job) == [
            "org.apache.aurora.port.0",
            "http",
            "org.apache.aurora.port.2",
        ]

    def test_custom_namespace(self):
        job = AuroraJob(port_namespace="com.example").add_ports(1)

        assert port_names(job) == ["com.example.port.0"]

    def test_default_namespace(self):
        assert AuroraJob().port_namespace == DEFAULT_PORT_NAMESPACE

    def test_zero_ports(self):
        job = AuroraJob().add_ports(0).add_named_ports()

        assert port_names(job) == []
        assert job.port_count == 0


class TestConstraints:
    """Tests for value, limit and dedicated constraints."""

    def test_value_constraint(self):
        job = AuroraJob().add_value_constraint("zone", True, "us-east-1a", "us-east-1b")
        constraints = job.get_task_config().constraints

        assert len(constraints) == 1
        assert constraints[0].name == "zone"
        assert constraints[0].constraint.kind == "value"
        assert constraints[0].constraint.limit is None
        assert constraints[0].constraint.value.negated is True
        assert constraints[0].constraint.value.values == {"us-east-1a", "us-east-1b"}

    def test_limit_constraint(self):
        job = AuroraJob().add_limit_constraint("host", 1)
        constraint = job.get_task_config().constraints[0]

        assert constraint.name == "host"
        assert constraint.constraint.kind == "limit"
        assert constraint.constraint.value is None
        assert constraint.constraint.limit.limit == 1

    def test_constraints_keep_order(self):
        job = (
            AuroraJob()
            .add_limit_constraint("host", 1)
            .add_value_constraint("zone", False, "a")
            .add_limit_constraint("rack", 2)
        )

        names = [c.name for c in job.get_task_config().constraints]
        assert names == ["host", "zone", "rack"]

    def test_dedicated_constraint(self):
        dedicated = AuroraJob().add_dedicated_constraint("r", "n")
        explicit = AuroraJob().add_value_constraint("dedicated", False, "r/n")

        assert (
            dedicated.get_task_config().constraints
            == explicit.get_task_config().constraints
        )

    def test_dedicated_role_not_checked(self):
        job = AuroraJob().set_role("mine").add_dedicated_constraint("theirs", "db")
        value = job.get_task_config().constraints[0].constraint.value

        assert value.values == {"theirs/db"}


class TestUrisLabelsContainer:
    """Tests for fetcher URIs, labels and container replacement."""

    def test_add_uris(self):
        job = AuroraJob().add_uris(True, False, "u1", "u2")
        uris = job.get_task_config().mesos_fetcher_uris

        assert [u.value for u in uris] == ["u1", "u2"]
        assert all(u.extract is True and u.cache is False for u in uris)

    def test_duplicate_uris_kept(self):
        job = AuroraJob().add_uris(False, True, "u1").add_uris(True, True, "u1")
        uris = job.get_task_config().mesos_fetcher_uris

        assert len(uris) == 2
        assert uris[0].extract is False
        assert uris[1].extract is True

    def test_labels(self):
        job = AuroraJob().add_label("team", "infra").add_label("team", "infra")
        metadata = job.get_task_config().metadata

        assert len(metadata) == 2
        assert metadata[0].key == "team"
        assert metadata[0].value == "infra"

    def test_label_key_not_prefixed(self):
        job = AuroraJob().add_label("owner", "alice")

        assert job.get_task_config().metadata[0].key == "owner"

    def test_set_container_last_wins(self):
        job = (
            AuroraJob()
            .set_container(DockerContainer("nginx:1.27"))
            .set_container(MesosContainer().docker_image("python", "3.12"))
        )
        container = job.get_task_config().container

        assert container.kind == "mesos"
        assert container.docker is None
        assert container.mesos.image.docker.name == "python"

    def test_set_container_equals_built(self):
        docker = DockerContainer("nginx:1.27").add_parameter("label", "a=b")
        job = AuroraJob().set_container(MesosContainer()).set_container(docker)

        assert job.get_task_config().container == docker.build()


class TestAccessors:
    """Tests for live accessors and snapshots."""

    def test_accessors_return_live_objects(self):
        job = AuroraJob()
        job.get_job_key().name = "edited"
        job.get_task_config().is_service = True

        assert job.get_job_config().key.name == "edited"
        assert job.get_job_config().task_config.is_service is True

    def test_mutation_after_read(self):
        job = AuroraJob().set_name("a")
        config = job.get_job_config()
        job.set_name("b")

        assert config.key.name == "b"

    def test_snapshot_is_detached(self):
        job = AuroraJob().set_name("a").add_ports(1)
        snapshot = job.snapshot()
        job.set_name("b").add_ports(1)

        assert isinstance(snapshot, JobConfiguration)
        assert snapshot.key.name == "a"
        assert len(snapshot.task_config.resources) == 4

    def test_snapshot_keeps_sharing(self):
        snapshot = AuroraJob().set_role("r").snapshot()

        assert snapshot.task_config.job is snapshot.key
        assert snapshot.task_config.owner is snapshot.owner

    def test_snapshot_edits_do_not_reach_builder(self):
        job = AuroraJob().set_name("a").set_cpu(1.0)
        snapshot = job.snapshot()

        snapshot.key.name = "changed"
        snapshot.task_config.resources[0].num_cpus = 8.0
        snapshot.task_config.resources.append(Resource(named_port="extra"))

        assert job.get_job_key().name == "a"
        assert job.get_task_config().resources[0].num_cpus == 1.0
        assert len(job.get_task_config().resources) == 3

    def test_to_dict(self):
        data = (
            AuroraJob()
            .set_role("r")
            .set_environment("prod")
            .set_name("n")
            .set_instance_count(2)
            .to_dict()
        )

        assert data["key"] == {"role": "r", "environment": "prod", "name": "n"}
        assert data["owner"] == {"user": "r"}
        assert data["instance_count"] == 2
        assert "cron_schedule" not in data
        assert "executor_config" not in data["task_config"]


@pytest.mark.parametrize("count", [1, 4, 10])
def test_port_count_matches_resources(count):
    job = AuroraJob().add_named_ports("http").add_ports(count)

    assert job.port_count == count + 1
    assert len(job.get_task_config().resources) == 3 + count + 1
