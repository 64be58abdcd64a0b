"""
Demo script for emergency routing.

This example walks through the routing pipeline:
1. Generate a seeded city graph
2. Route each emergency center to each incident
3. Show the full route for one dispatch
"""

from fastroute.core.routing import (
    GraphGenerator,
    default_emergency_data,
    plan_response,
)


def main():
    """Run emergency routing demo."""
    print("=" * 60)
    print("Emergency Routing Demo")
    print("=" * 60)

    # 1. Generate city graph
    print("\n1. Generating 8x8 city graph (seed 42)...")
    graph, nodes = GraphGenerator().generate(8, rng=42)

    stats = graph.get_graph_stats()
    print(f"   - Intersections: {stats['num_nodes']}")
    print(f"   - Streets: {stats['num_edges']}")
    print(f"   - Connected: {stats['is_connected']}")
    print(f"   - Weight range: {stats['min_weight']} - {stats['max_weight']}")

    # 2. Plan responses
    print("\n2. Planning responses...")
    centers, incidents = default_emergency_data()

    for incident in incidents:
        for center in centers:
            plan = plan_response(graph, center, incident)
            if plan.stats is None:
                continue

            print(
                f"   - {center.name:>22} -> {incident.name:<20} "
                f"{plan.stats.formatted_time:>8} ({plan.stats.total_blocks} blocks, "
                f"{plan.stats.rating.value})"
            )

    # 3. Detail for the hospital answering the medical emergency
    print("\n3. Route detail:")
    plan = plan_response(graph, centers[0], incidents[2])
    print(f"   - {plan.center.name} -> {plan.incident.name} [{plan.incident.severity.value}]")
    if plan.route:
        print(f"     path: {' -> '.join(plan.route.path_ids())}")
        print(f"     distance: {plan.route.distance:.1f}")
        print(f"     nodes reached during search: {len(plan.route.visited_nodes)}")
    if plan.stats:
        print(f"     road types: {plan.stats.to_dict()['roadTypes']}")
        print(f"     traffic: {plan.stats.to_dict()['trafficConditions']}")
        print(f"     efficiency: {plan.stats.efficiency} ({plan.stats.rating.value})")

    print("\n" + "=" * 60)
    print("Demo complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
