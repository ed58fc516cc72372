from flask_wtf import FlaskForm
from wtforms import BooleanField, DecimalField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Length, Optional

from onemanvan.app.field_types import FieldType
from onemanvan.app.models.custom_field import EntityType


class CustomFieldForm(FlaskForm):
    entity_type = SelectField('Entity Type', choices=[(t, t) for t in EntityType.ALL],
                              validators=[DataRequired()])
    field_name = StringField('Field Name', validators=[DataRequired(), Length(max=100)])
    display_label = StringField('Label', validators=[Optional(), Length(max=100)])
    field_type = SelectField('Type', choices=[(t.value, t.display_name) for t in FieldType],
                             default=FieldType.TEXT.value)
    is_required = BooleanField('Required')
    default_value = StringField('Default Value', validators=[Optional(), Length(max=500)])
    placeholder = StringField('Placeholder', validators=[Optional(), Length(max=200)])
    description = StringField('Help Text', validators=[Optional(), Length(max=500)])
    # Comma separated, used by dropdown fields only
    choice_options = StringField('Options', validators=[Optional(), Length(max=500)])
    min_value = DecimalField('Minimum', validators=[Optional()])
    max_value = DecimalField('Maximum', validators=[Optional()])
    max_length = IntegerField('Max Length', validators=[Optional()])
    display_order = IntegerField('Display Order', validators=[Optional()])

    def option_list(self):
        return [o.strip() for o in (self.choice_options.data or '').split(',') if o.strip()]
