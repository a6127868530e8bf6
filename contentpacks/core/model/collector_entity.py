from __future__ import annotations

from contentpacks.core.model.identifiers import ModelTypes
from contentpacks.core.model.mapping import EntityPayload, register_payload
from contentpacks.core.model.references import ValueReference


@register_payload(ModelTypes.COLLECTOR)
class CollectorEntity(EntityPayload):
    name: ValueReference
    service_type: ValueReference
    node_operating_system: ValueReference
    executable_path: ValueReference
    configuration_path: ValueReference
    execute_parameters: ValueReference
    validation_command: ValueReference
    default_template: ValueReference

    @classmethod
    def create(
        cls,
        name: ValueReference,
        service_type: ValueReference,
        node_operating_system: ValueReference,
        executable_path: ValueReference,
        configuration_path: ValueReference,
        execute_parameters: ValueReference,
        validation_command: ValueReference,
        default_template: ValueReference,
    ) -> "CollectorEntity":
        return cls(
            name=name,
            service_type=service_type,
            node_operating_system=node_operating_system,
            executable_path=executable_path,
            configuration_path=configuration_path,
            execute_parameters=execute_parameters,
            validation_command=validation_command,
            default_template=default_template,
        )
