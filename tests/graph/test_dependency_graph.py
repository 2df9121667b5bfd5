"""Tests for dependency graph construction."""

from pathlib import Path
import pytest
import tinyform
from tinyform.graph.dependency_graph import GraphBuilder, build_graph
from tinyform.ingest.declaration_loader import load_declaration, load_secrets, parse_declaration
from tinyform.utils.errors import CycleError, DanglingReferenceError, DeclarationError
from conftest import resource

TEMPLATES = Path(tinyform.__file__).parent / "templates"


@pytest.fixture
def web_db_graph():
    """Graph of the bundled web/database stack."""
    declaration = load_declaration(str(TEMPLATES / "web_db_stack.yaml"))
    secrets = load_secrets(str(TEMPLATES / "secrets.example.yaml"))
    return build_graph(declaration, secrets)


class TestGraphBuilder:
    """Test GraphBuilder class."""
    
    def test_build_simple_chain(self, vpc_subnet_instance):
        """Test building graph from a V -> S1 -> I1 chain."""
        graph = build_graph(vpc_subnet_instance)
        
        assert len(graph) == 3
        assert graph.get_dependencies("web") == {"subnet"}
        assert graph.get_dependencies("subnet") == {"vpc"}
        assert graph.get_dependents("vpc") == {"subnet"}
        assert graph.get_downstream_resources("vpc") == {"subnet", "web"}
        assert graph.get_upstream_resources("web") == {"subnet", "vpc"}
        assert graph.referenced_attributes("web", "subnet") == {"id"}
    
    def test_count_expansion(self):
        """A counted declaration expands to name[i] nodes sharing one dependency."""
        declaration = parse_declaration({
            "variables": {"web_count": 2},
            "resources": [
                resource("sg", "SecurityGroup"),
                resource("web", "Instance", count="${var.web_count}", sg="${sg.id}"),
            ],
        })
        graph = build_graph(declaration)
        
        assert len(graph) == 3
        assert graph.get_group("web") == ["web[0]", "web[1]"]
        assert graph.get_instance("web[1]").ordinal == 1
        assert graph.get_dependents("sg") == {"web[0]", "web[1]"}
    
    def test_count_index_pairs_instances(self):
        """RES[count.index] links each instance to its same-ordinal peer."""
        declaration = parse_declaration({
            "resources": [
                resource("web", "Instance", count=2),
                resource("eip", "ElasticIp", count=2, instance="${web[count.index].id}"),
            ],
        })
        graph = build_graph(declaration)
        
        assert graph.get_dependencies("eip[0]") == {"web[0]"}
        assert graph.get_dependencies("eip[1]") == {"web[1]"}
    
    def test_zero_count_declares_no_nodes(self):
        """count 0 yields no nodes; a splat over it yields no edges."""
        declaration = parse_declaration({
            "resources": [
                resource("subnet", "Subnet", count=0),
                resource("group", "DbSubnetGroup", subnet_ids="${subnet[*].id}"),
            ],
        })
        graph = build_graph(declaration)
        
        assert len(graph) == 1
        assert graph.get_dependencies("group") == set()
    
    def test_splat_depends_on_every_instance(self):
        declaration = parse_declaration({
            "resources": [
                resource("subnet", "Subnet", count=3),
                resource("group", "DbSubnetGroup", subnet_ids="${subnet[*].id}"),
            ],
        })
        graph = build_graph(declaration)
        assert graph.get_dependencies("group") == {"subnet[0]", "subnet[1]", "subnet[2]"}
    
    def test_depends_on_by_name_and_address(self):
        declaration = parse_declaration({
            "resources": [
                resource("igw", "InternetGateway"),
                resource("web", "Instance", count=2),
                {"id": "eip", "kind": "ElasticIp", "depends_on": ["igw", "web[1]"]},
            ],
        })
        graph = build_graph(declaration)
        assert graph.get_dependencies("eip") == {"igw", "web[1]"}
    
    def test_instances_in_declaration_order(self, vpc_subnet_instance):
        graph = GraphBuilder(vpc_subnet_instance).build()
        assert [i.id for i in graph.get_all_instances()] == ["vpc", "subnet", "web"]


class TestGraphFaults:
    """Test faults detected while building."""
    
    def test_dangling_resource_reference(self):
        """Referencing a resource that does not exist fails with its name."""
        declaration = parse_declaration({
            "resources": [resource("subnet", "Subnet", vpc_id="${nonexistent.id}")],
        })
        with pytest.raises(DanglingReferenceError) as exc_info:
            build_graph(declaration)
        
        assert exc_info.value.resource_id == "subnet"
        assert "nonexistent" in str(exc_info.value)
    
    def test_ordinal_out_of_range(self):
        declaration = parse_declaration({
            "resources": [
                resource("subnet", "Subnet", count=2),
                resource("web", "Instance", subnet_id="${subnet[2].id}"),
            ],
        })
        with pytest.raises(DanglingReferenceError, match="out of range"):
            build_graph(declaration)
    
    def test_variable_list_shorter_than_count(self):
        """A count larger than the indexed variable list is a dangling reference."""
        declaration = parse_declaration({
            "variables": {"cidrs": ["10.0.1.0/24"]},
            "resources": [
                resource("subnet", "Subnet", count=2, cidr_block="${var.cidrs[count.index]}"),
            ],
        })
        with pytest.raises(DanglingReferenceError) as exc_info:
            build_graph(declaration)
        assert exc_info.value.resource_id == "subnet[1]"
    
    def test_counted_reference_requires_index(self):
        declaration = parse_declaration({
            "resources": [
                resource("web", "Instance", count=2),
                resource("eip", "ElasticIp", instance="${web.id}"),
            ],
        })
        with pytest.raises(DanglingReferenceError, match="index is required"):
            build_graph(declaration)
    
    def test_count_index_outside_counted_resource(self):
        declaration = parse_declaration({
            "resources": [resource("vpc", "Vpc", tags={"Name": "vpc-${count.index}"})],
        })
        with pytest.raises(DanglingReferenceError, match="count.index"):
            build_graph(declaration)
    
    def test_dangling_output_reference(self):
        """Outputs are checked while building, owned by output.<name>."""
        declaration = parse_declaration({
            "resources": [resource("vpc", "Vpc")],
            "outputs": {"bad": "${nonexistent.id}"},
        })
        with pytest.raises(DanglingReferenceError) as exc_info:
            build_graph(declaration)
        
        assert exc_info.value.resource_id == "output.bad"
    
    def test_output_ordinal_out_of_range(self):
        declaration = parse_declaration({
            "resources": [resource("web", "Instance", count=2)],
            "outputs": {"third": "${web[2].id}"},
        })
        with pytest.raises(DanglingReferenceError, match="out of range"):
            build_graph(declaration)
    
    def test_count_index_in_output(self):
        declaration = parse_declaration({
            "resources": [resource("web", "Instance", count=2)],
            "outputs": {"current": "${web[count.index].id}"},
        })
        with pytest.raises(DanglingReferenceError, match="count.index"):
            build_graph(declaration)
    
    def test_unknown_secret(self):
        """Secret names are checked only when secrets are supplied."""
        declaration = parse_declaration({
            "resources": [resource("db", "DbInstance", password="${secret.db_password}")],
        })
        assert len(build_graph(declaration)) == 1
        with pytest.raises(DanglingReferenceError, match="unknown secret"):
            build_graph(declaration, {})
    
    def test_unknown_depends_on(self):
        declaration = parse_declaration({
            "resources": [{"id": "web", "kind": "Instance", "depends_on": ["ghost"]}],
        })
        with pytest.raises(DanglingReferenceError):
            build_graph(declaration)
    
    def test_cycle_detected(self):
        """Test that cycles are reported with their members."""
        declaration = parse_declaration({
            "resources": [
                resource("a", "SecurityGroup", peer="${b.id}"),
                resource("b", "SecurityGroup", peer="${a.id}"),
            ],
        })
        with pytest.raises(CycleError) as exc_info:
            build_graph(declaration)
        assert set(exc_info.value.cycle) == {"a", "b"}
    
    def test_self_reference_is_a_cycle(self):
        declaration = parse_declaration({
            "resources": [resource("a", "SecurityGroup", peer="${a.id}")],
        })
        with pytest.raises(CycleError):
            build_graph(declaration)
    
    def test_count_must_be_variable_or_int(self):
        declaration = parse_declaration({
            "variables": {"n": "two"},
            "resources": [resource("web", "Instance", count="${var.n}")],
        })
        with pytest.raises(DeclarationError, match="non-negative integer"):
            build_graph(declaration)


class TestBundledStack:
    """Test the graph of the bundled web/database stack."""
    
    def test_node_count(self, web_db_graph):
        """One public subnet, two private subnets and one web server."""
        assert len(web_db_graph) == 17
        assert web_db_graph.get_group("tutorial_private_subnet") == [
            "tutorial_private_subnet[0]", "tutorial_private_subnet[1]"
        ]
    
    def test_db_security_group_depends_on_web_security_group(self, web_db_graph):
        """The DB SG ingress rule references the web SG."""
        assert "tutorial_web_sg" in web_db_graph.get_dependencies("tutorial_db_sg")
    
    def test_database_waits_for_subnet_group_and_security_group(self, web_db_graph):
        dependencies = web_db_graph.get_dependencies("tutorial_database")
        assert dependencies == {"tutorial_db_subnet_group", "tutorial_db_sg"}
        assert web_db_graph.get_dependencies("tutorial_db_subnet_group") == {
            "tutorial_private_subnet[0]", "tutorial_private_subnet[1]"
        }
    
    def test_elastic_ip_follows_its_instance(self, web_db_graph):
        assert web_db_graph.get_dependencies("tutorial_web_eip[0]") == {"tutorial_web[0]"}
        assert "tutorial_kp" in web_db_graph.get_dependencies("tutorial_web[0]")
